"""
Data model for tracking checks: replay actions, expected and observed
analytics events, and per-URL results.
"""

from typing import Any, Dict, List, NamedTuple, Optional, Tuple, Union

from config_loader import ConfigError

LEGACY_PROTOCOL = "legacy"
CURRENT_PROTOCOL = "current"


class ClickAction(NamedTuple):
    """Click a selector, optionally confirm with a follow-up click, then wait."""
    selector: str
    next: bool = False
    next_selector: Optional[str] = None
    wait_for: Optional[int] = None

    @property
    def kind(self) -> str:
        return "click"


class EvaluateAction(NamedTuple):
    """Run a registered page script by name."""
    script: str

    @property
    def kind(self) -> str:
        return "evaluate"


Action = Union[ClickAction, EvaluateAction]


class ExpectedEvent(NamedTuple):
    name: str
    type: str
    event_parameters: Dict[str, str]

    def to_dict(self) -> Dict[str, Any]:
        return {"name": self.name, "type": self.type, "eventParameters": dict(self.event_parameters)}


class ObservedEvent(NamedTuple):
    """One intercepted analytics beacon, reduced to the fields used for matching."""
    protocol: str
    params: Dict[str, str]

    def get(self, key: str, default: Optional[str] = None) -> Optional[str]:
        return self.params.get(key, default)

    def to_dict(self) -> Dict[str, str]:
        return dict(self.params)


class EventResult(NamedTuple):
    name: str
    type: str
    is_setup_correctly: bool
    expected: Dict[str, str]
    actual: Optional[ObservedEvent] = None

    def to_dict(self) -> Dict[str, Any]:
        data = {
            "name": self.name,
            "type": self.type,
            "isSetupCorrectly": self.is_setup_correctly,
            "expected": dict(self.expected),
        }
        if self.actual is not None:
            data["actual"] = self.actual.to_dict()
        return data


class UrlTestResult(NamedTuple):
    url: str
    ga_events: List[ObservedEvent]
    event_results: List[EventResult]

    @property
    def passed(self) -> int:
        return sum(1 for result in self.event_results if result.is_setup_correctly)

    def to_dict(self) -> Dict[str, Any]:
        return {
            "url": self.url,
            "gaEvents": [event.to_dict() for event in self.ga_events],
            "eventResults": [result.to_dict() for result in self.event_results],
        }


class SessionOutcome(NamedTuple):
    """Either a finished URL Test Result or the failure that stopped the session."""
    url: str
    result: Optional[UrlTestResult] = None
    error: Optional[str] = None
    state: Optional[str] = None

    @property
    def ok(self) -> bool:
        return self.result is not None

    @classmethod
    def success(cls, result: UrlTestResult) -> "SessionOutcome":
        return cls(url=result.url, result=result, state="done")

    @classmethod
    def failure(cls, url: str, error: str, state: str) -> "SessionOutcome":
        return cls(url=url, error=error, state=state)

    def to_dict(self) -> Dict[str, Any]:
        if self.result is not None:
            return self.result.to_dict()
        return {"url": self.url, "error": self.error, "state": self.state}


def _optional_int(value: Any, field: str) -> Optional[int]:
    if value is None:
        return None
    if isinstance(value, bool) or not isinstance(value, (int, float)) or value < 0:
        raise ConfigError(f"'{field}' must be a non-negative number of milliseconds, got {value!r}")
    return int(value)


def action_from_dict(data: Dict[str, Any]) -> Action:
    """Build an Action from its config.json representation."""
    if not isinstance(data, dict):
        raise ConfigError(f"Action must be an object, got {data!r}")

    action_type = data.get("type")
    if action_type == "click":
        selector = data.get("selector")
        if not selector or not isinstance(selector, str):
            raise ConfigError(f"Click action requires a 'selector': {data!r}")
        return ClickAction(
            selector=selector,
            next=bool(data.get("next", False)),
            next_selector=data.get("nextSelector"),
            wait_for=_optional_int(data.get("waitFor"), "waitFor"),
        )
    if action_type == "evaluate":
        script = data.get("callback", data.get("script"))
        if not script or not isinstance(script, str):
            raise ConfigError(f"Evaluate action requires a registered 'callback' name: {data!r}")
        return EvaluateAction(script=script)

    raise ConfigError(f"Unknown action type: {action_type!r}")


def expected_event_from_dict(data: Dict[str, Any]) -> ExpectedEvent:
    """Build an ExpectedEvent from an eventsToCheck entry."""
    if not isinstance(data, dict):
        raise ConfigError(f"Expected event must be an object, got {data!r}")

    params = data.get("eventParameters", {})
    if not isinstance(params, dict):
        raise ConfigError(f"'eventParameters' must be an object: {data!r}")

    return ExpectedEvent(
        name=str(data.get("name", "")),
        type=str(data.get("type", "")),
        event_parameters={str(k): str(v) for k, v in params.items()},
    )


def actions_from_config(items: List[Dict[str, Any]]) -> Tuple[Action, ...]:
    return tuple(action_from_dict(item) for item in items)


def expected_events_from_config(items: List[Dict[str, Any]]) -> Tuple[ExpectedEvent, ...]:
    return tuple(expected_event_from_dict(item) for item in items)
