"""
Run configuration for the GA tracking checker.
Defaults live here; config.json values and CLI flags override them.
"""

from typing import Dict, List, NamedTuple, Optional, Tuple

from config_loader import ConfigError, ConfigLoader
from models import Action, ExpectedEvent, LEGACY_PROTOCOL, CURRENT_PROTOCOL, actions_from_config, expected_events_from_config

# Collect endpoints, matched as URL substrings
DEFAULT_ANALYTICS_ENDPOINTS: Dict[str, str] = {
    LEGACY_PROTOCOL: "google-analytics.com/collect?",
    CURRENT_PROTOCOL: "google-analytics.com/g/collect?",
}

# Query parameters retained per protocol
PROTOCOL_FIELDS: Dict[str, Tuple[str, ...]] = {
    LEGACY_PROTOCOL: ("ec", "ea", "el", "tid"),
    CURRENT_PROTOCOL: ("en", "_p", "_s", "tid"),
}

DEFAULT_CONSENT_SELECTOR = "#CybotCookiebotDialogBodyLevelButtonLevelOptinAllowAll"
DEFAULT_NEXT_SELECTOR = "#main > main > section > div > div > footer > div > div.rc-footer__cta-wrapper > button"
DEFAULT_SETTLE_DELAY_MS = 300
DEFAULT_CONSENT_TIMEOUT_MS = 3000

DEFAULT_USER_AGENT = (
    "Mozilla/5.0 (Windows NT 10.0; Win64; x64) AppleWebKit/537.36 "
    "(KHTML, like Gecko) Chrome/89.0.4389.82 Safari/537.36"
)
DEFAULT_VIEWPORT = {"width": 1365, "height": 700}
DEFAULT_BROWSER_ARGS = [
    "--no-sandbox",
    "--disable-setuid-sandbox",
    "--window-size=1365,800",
]

DEFAULT_CSV_PATH = "results.csv"
DEFAULT_JSON_PATH = "results.json"
CSV_HEADER = [
    "URL",
    "Event Name",
    "Type",
    "Is Setup Correctly",
    "Expected Parameters",
    "Actual Parameters",
]

DEFAULT_WEBSOCKET_HOST = "localhost"
DEFAULT_WEBSOCKET_PORT = 9999


class RunSettings(NamedTuple):
    """Everything one run needs, fixed before the first session starts."""
    urls: Tuple[str, ...]
    actions: Tuple[Action, ...]
    events_to_check: Tuple[ExpectedEvent, ...]
    concurrency_limit: int = 1
    headless: bool = True
    clear_csv: bool = False
    csv_path: str = DEFAULT_CSV_PATH
    json_path: str = DEFAULT_JSON_PATH
    consent_selector: str = DEFAULT_CONSENT_SELECTOR
    consent_timeout: int = DEFAULT_CONSENT_TIMEOUT_MS
    default_next_selector: str = DEFAULT_NEXT_SELECTOR
    settle_delay: int = DEFAULT_SETTLE_DELAY_MS
    user_agent: str = DEFAULT_USER_AGENT
    viewport: Dict[str, int] = DEFAULT_VIEWPORT
    browser_args: Tuple[str, ...] = tuple(DEFAULT_BROWSER_ARGS)
    analytics_endpoints: Dict[str, str] = DEFAULT_ANALYTICS_ENDPOINTS
    action_timeout: Optional[int] = None
    navigation_timeout: Optional[int] = None
    stop_on_error: bool = False
    debug_mode: bool = False
    websocket_enabled: bool = False
    websocket_host: str = DEFAULT_WEBSOCKET_HOST
    websocket_port: int = DEFAULT_WEBSOCKET_PORT


def _positive_int(value, field: str) -> int:
    if isinstance(value, bool) or not isinstance(value, int) or value < 1:
        raise ConfigError(f"'{field}' must be a positive integer, got {value!r}")
    return value


def _optional_ms(value, field: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigError(f"'{field}' must be a non-negative number of milliseconds, got {value!r}")
    return int(value)


def _timeout_ms(value, field: str) -> Optional[int]:
    # Playwright reads a timeout of 0 as "wait forever"
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 1:
        raise ConfigError(f"'{field}' must be a timeout of at least 1 millisecond, got {value!r}")
    return int(value)


def _string_list(value, field: str) -> List[str]:
    if not isinstance(value, list) or not all(isinstance(item, str) for item in value):
        raise ConfigError(f"'{field}' must be a list of strings")
    return value


def load_run_settings(loader: ConfigLoader, **overrides) -> RunSettings:
    """
    Build validated RunSettings from a loaded configuration.

    Args:
        loader: Loaded configuration
        **overrides: RunSettings fields that take precedence (None values are ignored)

    Returns:
        Immutable settings for one run
    """
    urls = _string_list(loader.get_urls(), "urls")
    if not isinstance(loader.get_actions(), list):
        raise ConfigError("'actions' must be a list")
    if not isinstance(loader.get_events_to_check(), list):
        raise ConfigError("'eventsToCheck' must be a list")

    endpoints = dict(DEFAULT_ANALYTICS_ENDPOINTS)
    endpoints.update(loader.get_analytics_endpoints())
    unknown = set(endpoints) - set(PROTOCOL_FIELDS)
    if unknown:
        raise ConfigError(f"Unknown analytics protocols: {', '.join(sorted(unknown))}")

    websocket_config = loader.get_websocket_config()

    settings = RunSettings(
        urls=tuple(urls),
        actions=actions_from_config(loader.get_actions()),
        events_to_check=expected_events_from_config(loader.get_events_to_check()),
        concurrency_limit=_positive_int(loader.get('concurrencyLimit', 1), "concurrencyLimit"),
        headless=bool(loader.get('headless', True)),
        clear_csv=bool(loader.get('clearCSV', False)),
        csv_path=loader.get('output.csv', DEFAULT_CSV_PATH),
        json_path=loader.get('output.json', DEFAULT_JSON_PATH),
        consent_selector=loader.get('consentSelector', DEFAULT_CONSENT_SELECTOR),
        consent_timeout=_timeout_ms(loader.get('consentTimeout', DEFAULT_CONSENT_TIMEOUT_MS), "consentTimeout"),
        default_next_selector=loader.get('defaultNextSelector', DEFAULT_NEXT_SELECTOR),
        settle_delay=_optional_ms(loader.get('settleDelay', DEFAULT_SETTLE_DELAY_MS), "settleDelay"),
        user_agent=loader.get('userAgent', DEFAULT_USER_AGENT),
        viewport=loader.get('viewport', DEFAULT_VIEWPORT),
        browser_args=tuple(_string_list(loader.get('browserArgs', DEFAULT_BROWSER_ARGS), "browserArgs")),
        analytics_endpoints=endpoints,
        action_timeout=_timeout_ms(loader.get('actionTimeout'), "actionTimeout"),
        navigation_timeout=_timeout_ms(loader.get('navigationTimeout'), "navigationTimeout"),
        stop_on_error=bool(loader.get('stopOnError', False)),
        debug_mode=bool(loader.get_logging_config().get('debugMode', False)),
        websocket_enabled=bool(websocket_config.get('enabled', False)),
        websocket_host=websocket_config.get('host', DEFAULT_WEBSOCKET_HOST),
        websocket_port=websocket_config.get('port', DEFAULT_WEBSOCKET_PORT),
    )

    overrides = {k: v for k, v in overrides.items() if v is not None}
    if 'concurrency_limit' in overrides:
        _positive_int(overrides['concurrency_limit'], "concurrencyLimit")
    return settings._replace(**overrides)
