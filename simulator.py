#!/usr/bin/env python3
"""
Banker's Algorithm Resource Allocator
Main entry point: command shell over the safety check and request processor.

Commands:
    show-state                      Display Total, Available, Max, Allocation, Need
    check-safety                    Run the safety algorithm and show its trace
    request <pid> <r0> ... <rm-1>   Ask for resources on behalf of a process
    exit                            Leave the shell
"""

import argparse
import sys
from typing import Callable, Dict, List, Optional

from models.system_state import SystemState
from algorithms.avoidance import check_safety, request
from analysis.metrics import RequestMetrics, format_metrics_report
from utils.logger import SimulatorLogger
from utils.presentation import render_outcome, render_state, render_trace
from utils.scenario_loader import (
    MIN_PROCESSES,
    MIN_RESOURCES,
    ScenarioLoadError,
    build_state,
    get_scenario_description,
    load_scenario,
    parse_vector,
    sample_state,
)


MENU = (
    "\n=============== MENU ===============\n"
    "1. show-state\n"
    "2. check-safety\n"
    "3. request <pid> <r0> ... <rm-1>\n"
    "4. exit"
)

# Menu numbers accepted as aliases for the command names
ALIASES = {'1': 'show-state', '2': 'check-safety', '3': 'request', '4': 'exit'}


def execute_command(
    system_state: SystemState,
    line: str,
    logger: SimulatorLogger,
    metrics: RequestMetrics,
    input_fn: Callable[[str], str] = input
) -> bool:
    """
    Execute a single shell command.

    Args:
        system_state: State owned by the shell
        line: Raw command line
        logger: Logger instance
        metrics: Request statistics for this session
        input_fn: Prompt function used when 'request' is given without arguments

    Returns:
        False if the shell should exit, True otherwise
    """
    parts = line.split()
    if not parts:
        return True

    command = ALIASES.get(parts[0], parts[0])
    args = parts[1:]

    if command == 'show-state':
        logger.log_state(render_state(system_state))

    elif command == 'check-safety':
        is_safe, order, trace = check_safety(system_state)
        metrics.record_safety_check()
        logger.log("\n" + render_trace(trace))

    elif command == 'request':
        try:
            if args:
                pid = int(args[0])
                req = [int(x) for x in args[1:]]
            else:
                pid = int(input_fn("Enter pid: "))
                req = [int(x) for x in input_fn(
                    f"Enter request vector (m={system_state.num_resources}): "
                ).split()]
        except ValueError:
            logger.log("Usage: request <pid> <r0> ... <rm-1> (integers only)", "error")
            return True

        outcome = request(system_state, pid, req)
        metrics.record_request(pid, outcome)
        metrics.record_utilization(system_state)
        logger.log("\n" + render_outcome(outcome))

    elif command == 'exit':
        logger.log("Exited.")
        return False

    else:
        logger.log(f"Unknown command: {parts[0]}", "error")

    return True


def run_shell(
    system_state: SystemState,
    logger: SimulatorLogger,
    input_fn: Callable[[str], str] = input
) -> RequestMetrics:
    """
    Run the interactive menu loop until 'exit' or end of input.

    Args:
        system_state: State owned by the shell
        logger: Logger instance
        input_fn: Prompt function (replaceable for tests)

    Returns:
        RequestMetrics collected during the session
    """
    metrics = RequestMetrics()
    while True:
        logger.log(MENU)
        try:
            line = input_fn("Select a command: ")
            if not execute_command(system_state, line, logger, metrics, input_fn):
                break
        except EOFError:
            logger.log("Exited.")
            break
    return metrics


def replay_requests(
    system_state: SystemState,
    requests: List[Dict],
    logger: SimulatorLogger
) -> RequestMetrics:
    """
    Feed scripted requests through the request processor in order.

    Args:
        system_state: State to mutate
        requests: List of {'pid': int, 'request': List[int]}
        logger: Logger instance

    Returns:
        RequestMetrics for the replay
    """
    metrics = RequestMetrics()
    for entry in requests:
        pid = entry['pid']
        req = entry['request']
        outcome = request(system_state, pid, req)
        metrics.record_request(pid, outcome)
        metrics.record_utilization(system_state)

        logger.log_request(pid, req, outcome)
        logger.log_trace(render_trace(outcome.trace))

    return metrics


def build_from_input(logger: SimulatorLogger, input_fn: Callable[[str], str] = input) -> SystemState:
    """
    Prompt for n, m, Total, and each process's Max and Allocation.

    Each line is re-prompted until it is well formed.

    Raises:
        ScenarioLoadError: If the allocations exceed the totals
    """
    logger.log("\n=== System initialization ===")
    while True:
        try:
            n = int(input_fn(f"Number of processes n (>={MIN_PROCESSES}): "))
            m = int(input_fn(f"Number of resource types m (>={MIN_RESOURCES}): "))
        except ValueError:
            n = m = 0
        if n >= MIN_PROCESSES and m >= MIN_RESOURCES:
            break
        logger.log(f"Require n>={MIN_PROCESSES} and m>={MIN_RESOURCES}. Please try again.", "warning")

    total = _prompt_vector(f"Total (m={m}): ", m, logger, input_fn)

    maximum = []
    allocation = []
    for i in range(n):
        max_row = _prompt_vector(f"P{i} Max (m={m}): ", m, logger, input_fn)
        while True:
            alloc_row = _prompt_vector(f"P{i} Allocation (m={m}): ", m, logger, input_fn)
            if all(a <= b for a, b in zip(alloc_row, max_row)):
                break
            logger.log("Allocation exceeds Max, please re-enter.", "warning")
        maximum.append(max_row)
        allocation.append(alloc_row)

    return build_state(total, maximum, allocation)


def _prompt_vector(
    prompt: str,
    length: int,
    logger: SimulatorLogger,
    input_fn: Callable[[str], str]
) -> List[int]:
    """Prompt until the user enters `length` non-negative integers."""
    while True:
        try:
            return parse_vector(input_fn(prompt), length)
        except ValueError:
            logger.log(f"Format error: enter {length} non-negative integers.", "warning")


def _initial_state(args, logger: SimulatorLogger, input_fn: Callable[[str], str]):
    """Build the starting state and any scripted requests from CLI arguments."""
    if args.scenario:
        system_state, requests = load_scenario(args.scenario)
        description = get_scenario_description(args.scenario)
        logger.log(f"Scenario: {args.scenario}")
        if description:
            logger.log(f"  {description}")
        return system_state, requests

    if args.sample:
        return sample_state(), []

    choice = input_fn("1) Manual input  2) Sample data  Select: ").strip()
    if choice == '2':
        return sample_state(), []
    return build_from_input(logger, input_fn), []


def main(argv: Optional[List[str]] = None, input_fn: Callable[[str], str] = input) -> int:
    """Main entry point for the allocator shell."""
    parser = argparse.ArgumentParser(
        description="Banker's Algorithm Resource Allocator"
    )
    source = parser.add_mutually_exclusive_group()
    source.add_argument(
        '--scenario',
        type=str,
        help='Path to scenario JSON file'
    )
    source.add_argument(
        '--sample',
        action='store_true',
        help='Start from the classic 5-process, 3-resource example'
    )
    parser.add_argument(
        '--replay',
        action='store_true',
        help="Replay the scenario's scripted requests instead of opening the shell (requires --scenario)"
    )
    parser.add_argument(
        '--verbose',
        action='store_true',
        help='Enable verbose logging'
    )
    parser.add_argument(
        '--log-file',
        type=str,
        default=None,
        help='Also write log output to this file'
    )

    args = parser.parse_args(argv)

    # Validate arguments
    if args.replay and not args.scenario:
        parser.error('--replay requires --scenario')

    logger = SimulatorLogger(verbose=args.verbose, log_file=args.log_file)
    logger.log("Banker's Algorithm Resource Allocator")

    try:
        system_state, requests = _initial_state(args, logger, input_fn)
    except ScenarioLoadError as e:
        logger.log(f"Failed to load scenario: {e}", "error")
        logger.close()
        return 1
    except EOFError:
        logger.log("Input ended before the system was initialized", "error")
        logger.close()
        return 1

    if args.replay:
        is_safe, order, _ = check_safety(system_state)
        logger.log_safety(is_safe, order)
        metrics = replay_requests(system_state, requests, logger)
        logger.log_state(render_state(system_state))
    else:
        metrics = run_shell(system_state, logger, input_fn)

    logger.log(format_metrics_report(metrics))
    logger.close()
    return 0


if __name__ == '__main__':
    sys.exit(main())
