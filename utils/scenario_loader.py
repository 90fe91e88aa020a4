"""
Scenario Loader for the Banker's Algorithm Resource Allocator.

Builds validated SystemState instances from JSON scenario files, raw
matrices, or the classic textbook example.
"""

import json
from typing import Dict, List, Any, Tuple

from models.system_state import SystemState


# Lower bounds enforced when a system is entered interactively
MIN_PROCESSES = 5
MIN_RESOURCES = 3


class ScenarioLoadError(Exception):
    """Exception raised when scenario file cannot be loaded or is invalid."""
    pass


def sample_state() -> SystemState:
    """
    Build the classic example system (5 processes, 3 resource types).

    Returns:
        SystemState with Available = [3, 3, 2]
    """
    return build_state(
        total=[10, 5, 7],
        maximum=[[7, 5, 3], [3, 2, 2], [9, 0, 2], [2, 2, 2], [4, 3, 3]],
        allocation=[[0, 1, 0], [2, 0, 0], [3, 0, 2], [2, 1, 1], [0, 0, 2]]
    )


def load_scenario(file_path: str) -> Tuple[SystemState, List[Dict]]:
    """
    Load scenario from JSON file.

    Expected format:
        {
            "description": "...",            (optional)
            "total": [10, 5, 7],
            "max": [[7, 5, 3], ...],
            "allocation": [[0, 1, 0], ...],
            "requests": [{"pid": 1, "request": [1, 0, 2]}, ...]   (optional)
        }

    Args:
        file_path: Path to scenario JSON file

    Returns:
        Tuple of (SystemState, requests)
        - SystemState: Initialized system
        - requests: Scripted requests to replay, in file order

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
    except UnicodeDecodeError as e:
        raise ScenarioLoadError(f"Scenario file is not valid UTF-8: {e}")
    except OSError as e:
        raise ScenarioLoadError(f"Cannot read scenario file {file_path}: {e}")

    if not isinstance(data, dict):
        raise ScenarioLoadError("Scenario must be a JSON object")

    # Validate required fields
    for key in ('total', 'max', 'allocation'):
        if key not in data:
            raise ScenarioLoadError(f"Scenario missing '{key}' field")

    system_state = build_state(data['total'], data['max'], data['allocation'])
    requests = _load_requests(data.get('requests', []))

    return system_state, requests


def build_state(total: List[int], maximum: List[List[int]], allocation: List[List[int]]) -> SystemState:
    """
    Validate raw matrices and build a SystemState.

    Critical validation: for each resource r, sum(allocation[:,r]) <= total[r].
    If this fails, the scenario is invalid.

    Args:
        total: Total instances per resource type
        maximum: Maximum demand matrix [P][R]
        allocation: Current allocation matrix [P][R]

    Returns:
        SystemState with Need and Available derived

    Raises:
        ScenarioLoadError: If the matrices are malformed or inconsistent
    """
    total = _as_vector(total, "total")
    num_resources = len(total)

    if not isinstance(maximum, list) or not maximum:
        raise ScenarioLoadError("'max' must be a non-empty list of rows")
    if not isinstance(allocation, list) or len(allocation) != len(maximum):
        raise ScenarioLoadError(
            f"'allocation' must have one row per process ({len(maximum)} expected)"
        )

    for pid, (max_row, alloc_row) in enumerate(zip(maximum, allocation)):
        max_row = _as_vector(max_row, f"max[{pid}]", num_resources)
        alloc_row = _as_vector(alloc_row, f"allocation[{pid}]", num_resources)

        for j in range(num_resources):
            if alloc_row[j] > max_row[j]:
                raise ScenarioLoadError(
                    f"Process {pid}: allocation[{j}] ({alloc_row[j]}) "
                    f"exceeds max[{j}] ({max_row[j]})"
                )
            if max_row[j] > total[j]:
                raise ScenarioLoadError(
                    f"Process {pid}: max[{j}] ({max_row[j]}) exceeds total[{j}] ({total[j]})"
                )

    # CRITICAL CHECK: sum(allocation[:,r]) <= total[r] for all r
    for j in range(num_resources):
        allocated = sum(row[j] for row in allocation)
        if allocated > total[j]:
            raise ScenarioLoadError(
                f"VALIDATION FAILED: Resource R{j} allocations ({allocated}) "
                f"exceed total instances ({total[j]}).\n"
                f"Sum of process allocations for R{j} must be <= {total[j]}"
            )

    try:
        return SystemState.from_matrices(total, maximum, allocation)
    except (ValueError, OverflowError) as e:
        raise ScenarioLoadError(str(e))


def parse_vector(text: str, length: int) -> List[int]:
    """
    Parse a whitespace-separated line of non-negative integers.

    Args:
        text: Raw input line
        length: Required number of entries

    Returns:
        Parsed vector

    Raises:
        ValueError: If the line has the wrong length or bad entries
    """
    parts = text.split()
    if len(parts) != length:
        raise ValueError(f"Expected {length} integers, got {len(parts)}")
    values = [int(part) for part in parts]
    if any(value < 0 for value in values):
        raise ValueError("Values must be non-negative integers")
    return values


def _as_vector(value: Any, name: str, length: int = None) -> List[int]:
    """Check that value is a list of non-negative ints of the expected length."""
    if not isinstance(value, list):
        raise ScenarioLoadError(f"'{name}' must be a list of integers")
    if length is not None and len(value) != length:
        raise ScenarioLoadError(
            f"'{name}' length ({len(value)}) does not match resource count ({length})"
        )
    for item in value:
        if isinstance(item, bool) or not isinstance(item, int):
            raise ScenarioLoadError(f"'{name}' contains non-integer value {item!r}")
        if item < 0:
            raise ScenarioLoadError(f"'{name}' contains negative value {item}")
    return value


def _load_requests(request_data: Any) -> List[Dict]:
    """
    Load scripted requests from scenario data.

    Only the shape is checked here. Out-of-range pids, wrong lengths and
    negative amounts are left to the request processor, which rejects them.

    Args:
        request_data: List of request dictionaries

    Returns:
        List of {'pid': int, 'request': List[int]} dictionaries
    """
    if not isinstance(request_data, list):
        raise ScenarioLoadError("'requests' must be a list")

    requests = []
    for index, entry in enumerate(request_data):
        if not isinstance(entry, dict):
            raise ScenarioLoadError(f"Request {index} must be an object")
        if 'pid' not in entry:
            raise ScenarioLoadError(f"Request {index} missing 'pid' field")
        if 'request' not in entry:
            raise ScenarioLoadError(f"Request {index} missing 'request' field")
        if not isinstance(entry['pid'], int) or not isinstance(entry['request'], list):
            raise ScenarioLoadError(f"Request {index} must have an integer 'pid' and a list 'request'")
        if not all(isinstance(x, int) for x in entry['request']):
            raise ScenarioLoadError(f"Request {index} contains non-integer amounts")
        requests.append({'pid': entry['pid'], 'request': list(entry['request'])})

    return requests


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
    except (OSError, ValueError):
        return ''
    if not isinstance(data, dict):
        return ''
    return data.get('description', '')
