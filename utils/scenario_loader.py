"""
Scenario Loader for the Banker's Allocator.

Loads and validates JSON scenario files: an initial configuration plus an
ordered list of operations to replay against it.
"""

import json
from typing import Dict, List, Tuple

from models.allocator_state import AllocatorState
from models.errors import MalformedConfigurationError


EVENT_FIELDS = {
    'check': [],
    'request': ['pid', 'request'],
    'release': ['pid'],
    'relinquish': ['pid', 'amounts'],
}


class ScenarioLoadError(Exception):
    """Exception raised when scenario file cannot be loaded or is invalid."""
    pass


def load_scenario(file_path: str) -> Tuple[AllocatorState, List[Dict]]:
    """
    Load scenario from JSON file.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Tuple of (AllocatorState, events)
        - AllocatorState: Initialized state built from the configuration
        - events: Operations in the order they should be applied

    Raises:
        ScenarioLoadError: If file cannot be loaded or is invalid
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except FileNotFoundError:
        raise ScenarioLoadError(f"Scenario file not found: {file_path}")
    except json.JSONDecodeError as e:
        raise ScenarioLoadError(f"Invalid JSON in scenario file: {e}")

    return build_scenario(data)


def build_scenario(data: Dict) -> Tuple[AllocatorState, List[Dict]]:
    """
    Build state and events from an already parsed scenario dictionary.

    Raises:
        ScenarioLoadError: If required fields are missing or invalid
    """
    if not isinstance(data, dict):
        raise ScenarioLoadError("Scenario must be a JSON object")

    # Validate required fields
    for required in ('available', 'max', 'allocation'):
        if required not in data:
            raise ScenarioLoadError(f"Scenario missing '{required}' field")

    try:
        state = AllocatorState.from_config(
            data['available'], data['max'], data['allocation']
        )
    except MalformedConfigurationError as e:
        raise ScenarioLoadError(f"Invalid configuration: {e}") from e

    if not isinstance(data.get('description', ''), str):
        raise ScenarioLoadError("'description' must be a string")

    events = data.get('events', [])
    if not isinstance(events, list):
        raise ScenarioLoadError("'events' must be a list")

    for index, event in enumerate(events):
        _validate_event(index, event)

    return state, events


def _validate_event(index: int, event: Dict) -> None:
    """
    Validate the structure of one event.

    Vector contents and PID ranges are checked by the allocator when the
    event is applied.

    Args:
        index: Position of the event in the scenario
        event: Event dictionary

    Raises:
        ScenarioLoadError: If event is invalid
    """
    if not isinstance(event, dict):
        raise ScenarioLoadError(f"Event {index}: must be an object")
    if 'type' not in event:
        raise ScenarioLoadError(f"Event {index}: missing 'type' field")

    event_type = event['type']
    if not isinstance(event_type, str) or event_type not in EVENT_FIELDS:
        raise ScenarioLoadError(f"Event {index}: unknown event type {event_type!r}")

    for field in EVENT_FIELDS[event_type]:
        if field not in event:
            raise ScenarioLoadError(f"Event {index}: {event_type} event missing '{field}'")


def get_scenario_description(file_path: str) -> str:
    """
    Get description from scenario file without full loading.

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Description string, or empty string if not present or unreadable
    """
    try:
        with open(file_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
    except (OSError, json.JSONDecodeError):
        return ''
    description = data.get('description', '') if isinstance(data, dict) else ''
    return description if isinstance(description, str) else ''
