import json

import pytest

from config import DEFAULT_ANALYTICS_ENDPOINTS, DEFAULT_CONSENT_TIMEOUT_MS, DEFAULT_NEXT_SELECTOR, load_run_settings
from config_loader import ConfigError, ConfigLoader
from models import ClickAction, EvaluateAction, ExpectedEvent, action_from_dict

SAMPLE_CONFIG = {
    "urls": ["https://example.com/", "https://example.com/shop"],
    "actions": [
        {"type": "evaluate", "callback": "removeGenesysApp"},
        {"type": "click", "selector": "#open", "next": True, "waitFor": 2000},
        {"type": "click", "selector": "#confirm", "nextSelector": "#ok"},
    ],
    "eventsToCheck": [
        {"name": "open", "type": "ua", "eventParameters": {"ec": "Dialog", "ea": "Open"}},
    ],
    "concurrencyLimit": 3,
    "headless": False,
    "clearCSV": True,
    "output": {"csv": "out/results.csv"},
    "logging": {"debugMode": True},
    "websocket": {"enabled": True, "port": 9100},
}


def _write(tmp_path, data) -> str:
    path = tmp_path / "config.json"
    path.write_text(json.dumps(data), encoding="utf-8")
    return str(path)


def test_loader_reads_file_and_supports_dot_notation(tmp_path):
    loader = ConfigLoader(_write(tmp_path, SAMPLE_CONFIG))

    assert loader.get("output.csv") == "out/results.csv"
    assert loader.get("output.json", "fallback.json") == "fallback.json"
    assert loader.get_urls() == SAMPLE_CONFIG["urls"]


def test_loader_errors(tmp_path):
    with pytest.raises(FileNotFoundError):
        ConfigLoader(str(tmp_path / "missing.json"))

    broken = tmp_path / "broken.json"
    broken.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        ConfigLoader(str(broken))


def test_run_settings_from_config(tmp_path):
    settings = load_run_settings(ConfigLoader(_write(tmp_path, SAMPLE_CONFIG)))

    assert settings.urls == ("https://example.com/", "https://example.com/shop")
    assert settings.actions == (
        EvaluateAction("removeGenesysApp"),
        ClickAction("#open", next=True, next_selector=None, wait_for=2000),
        ClickAction("#confirm", next=False, next_selector="#ok", wait_for=None),
    )
    assert settings.events_to_check == (ExpectedEvent("open", "ua", {"ec": "Dialog", "ea": "Open"}),)
    assert settings.concurrency_limit == 3
    assert settings.headless is False
    assert settings.clear_csv is True
    assert settings.csv_path == "out/results.csv"
    assert settings.json_path == "results.json"
    assert settings.default_next_selector == DEFAULT_NEXT_SELECTOR
    assert settings.analytics_endpoints == DEFAULT_ANALYTICS_ENDPOINTS
    assert settings.debug_mode is True
    assert settings.websocket_enabled is True
    assert settings.websocket_port == 9100


def test_overrides_take_precedence_and_none_is_ignored():
    loader = ConfigLoader.from_dict(SAMPLE_CONFIG)

    settings = load_run_settings(loader, headless=True, concurrency_limit=None, stop_on_error=True)

    assert settings.headless is True
    assert settings.concurrency_limit == 3
    assert settings.stop_on_error is True


@pytest.mark.parametrize("limit", [0, -1, "2", True])
def test_concurrency_limit_must_be_positive_integer(limit):
    with pytest.raises(ConfigError):
        load_run_settings(ConfigLoader.from_dict(dict(SAMPLE_CONFIG, concurrencyLimit=limit)))


def test_unknown_protocol_is_rejected():
    loader = ConfigLoader.from_dict(dict(SAMPLE_CONFIG, analyticsEndpoints={"amplitude": "api2.amplitude.com"}))

    with pytest.raises(ConfigError):
        load_run_settings(loader)


@pytest.mark.parametrize("action", [
    {"type": "hover", "selector": "#x"},
    {"type": "click"},
    {"type": "evaluate"},
    {"type": "click", "selector": "#x", "waitFor": -5},
    "click #x",
])
def test_invalid_actions(action):
    with pytest.raises(ConfigError):
        action_from_dict(action)


def test_evaluate_accepts_script_alias():
    assert action_from_dict({"type": "evaluate", "script": "scrollToBottom"}) == EvaluateAction("scrollToBottom")


def test_default_path_loads_bundled_config():
    loader = ConfigLoader()

    assert loader.config_path.name == "config.json"
    settings = load_run_settings(loader)
    assert settings.urls
    assert settings.consent_timeout == DEFAULT_CONSENT_TIMEOUT_MS


@pytest.mark.parametrize("field", ["consentTimeout", "actionTimeout", "navigationTimeout"])
@pytest.mark.parametrize("value", [0, 0.5, -1, "1000", True])
def test_timeouts_must_be_at_least_one_millisecond(field, value):
    with pytest.raises(ConfigError, match=field):
        load_run_settings(ConfigLoader.from_dict(dict(SAMPLE_CONFIG, **{field: value})))


def test_timeouts_accept_one_millisecond_and_settle_delay_accepts_zero():
    loader = ConfigLoader.from_dict(dict(SAMPLE_CONFIG, consentTimeout=1, actionTimeout=1,
                                         navigationTimeout=30000, settleDelay=0))

    settings = load_run_settings(loader)

    assert (settings.consent_timeout, settings.action_timeout, settings.navigation_timeout) == (1, 1, 30000)
    assert settings.settle_delay == 0
