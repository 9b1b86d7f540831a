"""
Expected-vs-observed event matching.
"""

from typing import Dict, List, Optional, Sequence

from models import EventResult, ExpectedEvent, ObservedEvent


def parameters_match(observed: ObservedEvent, parameters: Dict[str, str]) -> bool:
    """Every expected value must be a substring of a present, non-empty observed value."""
    for key, expected_value in parameters.items():
        value = observed.get(key)
        if not value or expected_value not in value:
            return False
    return True


def find_matching_event(observed_events: Sequence[ObservedEvent],
                        expected: ExpectedEvent) -> Optional[ObservedEvent]:
    """First observed event, in capture order, that satisfies the expectation."""
    for event in observed_events:
        if parameters_match(event, expected.event_parameters):
            return event
    return None


def check_events(observed_events: Sequence[ObservedEvent],
                 events_to_check: Sequence[ExpectedEvent]) -> List[EventResult]:
    """One result per expected event; observed events may satisfy several."""
    results = []
    for expected in events_to_check:
        found = find_matching_event(observed_events, expected)
        results.append(EventResult(
            name=expected.name,
            type=expected.type,
            is_setup_correctly=found is not None,
            expected=dict(expected.event_parameters),
            actual=found,
        ))
    return results
