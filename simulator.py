#!/usr/bin/env python3
"""
Banker's Allocator Simulator
Main entry point for replaying allocation scenarios.

Loads a scenario, applies its operations to the allocator one by one and
reports every decision.
"""

import argparse
import sys
from typing import Dict, List, Optional, Tuple

from models.allocator_state import AllocatorState
from models.decision import RequestOutcome, RequestStatus
from models.errors import InvalidRequestError
from utils.scenario_loader import load_scenario, get_scenario_description, ScenarioLoadError
from utils.logger import SimulatorLogger
from algorithms.avoidance import find_safe_sequence, handle_request, retry_pending_requests
from algorithms.release import release_process, relinquish_resources
from analysis.events import EventLog, SimulationEvent, EventType
from analysis.metrics import SimulationMetrics, format_metrics_report


OUTCOME_EVENT_TYPES = {
    RequestStatus.GRANTED: EventType.ALLOCATION,
    RequestStatus.MUST_WAIT: EventType.WAIT,
    RequestStatus.DENIED_UNSAFE: EventType.DENIAL,
    RequestStatus.EXCEEDS_NEED: EventType.REJECTION,
}


def run_simulation(
    scenario_path: str,
    retry_pending: bool = False,
    verbose: bool = False,
    log_file: Optional[str] = None
) -> Tuple[EventLog, SimulationMetrics, Optional[AllocatorState]]:
    """
    Replay a scenario against the allocator.

    Event handling:
    - check: run the safety algorithm on the current state
    - request: handle_request; with retry_pending, MUST_WAIT and
      DENIED_UNSAFE requests are remembered for retry
    - release: terminate the process (drops its pending request)
    - relinquish: live partial release
    After every release/relinquish, pending requests are retried in PID order
    when retry_pending is enabled.

    Args:
        scenario_path: Path to scenario JSON file
        retry_pending: Retry waiting requests after resources are returned
        verbose: Enable verbose logging
        log_file: Optional file to mirror the log into

    Returns:
        Tuple of (event_log, metrics, final state). The state is None when
        the scenario could not be loaded.
    """
    logger = SimulatorLogger(verbose=verbose, log_file=log_file)
    event_log = EventLog()
    metrics = SimulationMetrics()

    try:
        state, events = load_scenario(scenario_path)
    except ScenarioLoadError as e:
        logger.log(f"Failed to load scenario: {e}", "error")
        logger.close()
        return event_log, metrics, None

    metrics.total_processes = state.num_processes
    pending: Dict[int, List[int]] = {}

    logger.log(f"\n{'='*60}")
    logger.log("SIMULATION START")
    logger.log(f"Scenario: {scenario_path}")
    description = get_scenario_description(scenario_path)
    if description:
        logger.log(description)
    logger.log(f"{'='*60}\n")

    _display_initial_state(state, logger)

    for step, event in enumerate(events):
        try:
            returned = _process_event(step, event, state, pending, retry_pending,
                                      logger, event_log, metrics)
        except InvalidRequestError as e:
            logger.log(f"Step {step}: {event['type']} rejected - {e}", "error")
            returned = False

        if returned and retry_pending and pending:
            _retry_pending(step, state, pending, logger, event_log, metrics)

        # Verify accounting invariants (debug check)
        state.assert_invariants(f"at step {step}")
        metrics.record_step(
            step,
            [int(x) for x in state.allocation_matrix.sum(axis=0)],
            [int(x) for x in state.total_vector]
        )

        if verbose:
            logger.log(f"  Available now: {list(map(int, state.available_vector))}", "debug")
            logger.log_state(step, state.display())

    logger.log(f"\n{'='*60}")
    logger.log("SIMULATION COMPLETE")
    logger.log(f"{'='*60}\n")

    if verbose:
        logger.log("Event Log:", "debug")
        logger.log(event_log.display(), "debug")
        logger.log("")

    counts = {t: len(event_log.get_events_by_type(t)) for t in EventType}
    logger.log("Events: " + ", ".join(
        f"{t.value}={n}" for t, n in counts.items() if n
    ))

    if pending:
        for pid in sorted(pending):
            logger.log(f"  P{pid} still waiting for {pending[pid]}", "warning")

    metrics.record_final_allocations(state.allocation_matrix)
    logger.log(format_metrics_report(metrics, verbose=verbose, scenario=scenario_path))

    logger.close()
    return event_log, metrics, state


def _process_event(
    step: int,
    event: Dict,
    state: AllocatorState,
    pending: Dict[int, List[int]],
    retry_pending: bool,
    logger: SimulatorLogger,
    event_log: EventLog,
    metrics: SimulationMetrics
) -> bool:
    """
    Apply one scenario event.

    Returns:
        True if the event returned resources to the Available pool
    """
    event_type = event['type']

    if event_type == 'check':
        result = find_safe_sequence(state)
        logger.log_safety_check(step, result)
        metrics.record_safety_check(result.safe)
        event_log.add(SimulationEvent(
            step=step,
            event_type=EventType.SAFETY_CHECK,
            process_id=-1,
            sequence=result.sequence,
            safe=result.safe
        ))
        return False

    if event_type == 'request':
        outcome = handle_request(state, event['pid'], event['request'])
        _record_outcome(step, outcome, logger, event_log, metrics)

        if outcome.granted:
            pending.pop(outcome.pid, None)
        elif retry_pending and outcome.should_retry:
            pending[outcome.pid] = outcome.request
        return False

    if event_type == 'release':
        pid = event['pid']
        released = release_process(state, pid)
        pending.pop(pid, None)

        logger.log_release(step, pid, released)
        metrics.record_termination()
        event_log.add(SimulationEvent(
            step=step,
            event_type=EventType.RELEASE,
            process_id=pid,
            vector=released
        ))
        return True

    if event_type == 'relinquish':
        pid = event['pid']
        relinquish_resources(state, pid, event['amounts'])
        amounts = [int(x) for x in event['amounts']]

        logger.log_relinquish(step, pid, amounts)
        event_log.add(SimulationEvent(
            step=step,
            event_type=EventType.RELINQUISH,
            process_id=pid,
            vector=amounts
        ))
        return True

    raise ValueError(f"Step {step}: unknown event type {event_type!r}")


def _retry_pending(
    step: int,
    state: AllocatorState,
    pending: Dict[int, List[int]],
    logger: SimulatorLogger,
    event_log: EventLog,
    metrics: SimulationMetrics
) -> None:
    """Retry pending requests (PID order) after resources were returned."""
    for outcome in retry_pending_requests(state, pending):
        _record_outcome(step, outcome, logger, event_log, metrics, retry=True)


def _record_outcome(
    step: int,
    outcome: RequestOutcome,
    logger: SimulatorLogger,
    event_log: EventLog,
    metrics: SimulationMetrics,
    retry: bool = False
) -> None:
    """Log a request decision and add it to the event log and metrics."""
    logger.log_request(step, outcome, retry=retry)
    metrics.record_outcome(outcome, retry=retry)
    event_log.add(SimulationEvent(
        step=step,
        event_type=OUTCOME_EVENT_TYPES[outcome.status],
        process_id=outcome.pid,
        vector=outcome.request,
        sequence=outcome.sequence,
        reason=outcome.reason,
        retry=retry
    ))


def _display_initial_state(state: AllocatorState, logger: SimulatorLogger) -> None:
    """Display initial allocator state."""
    logger.log("Initial Allocator State:")
    logger.log(f"  Resource types: {state.num_resources}, processes: {state.num_processes}")
    logger.log(f"  Total: {list(map(int, state.total_vector))}")
    logger.log(f"  Available: {list(map(int, state.available_vector))}")

    logger.log("\nProcesses:")
    for p in range(state.num_processes):
        logger.log(
            f"  P{p}: max={list(map(int, state.max_demand_matrix[p]))}, "
            f"allocation={list(map(int, state.allocation_matrix[p]))}, "
            f"need={list(map(int, state.need_matrix[p]))}"
        )
    logger.log("")


def main(argv: Optional[List[str]] = None) -> int:
    """Main entry point for the simulator."""
    parser = argparse.ArgumentParser(
        description="Banker's Algorithm resource allocation simulator"
    )
    parser.add_argument(
        '--scenario',
        type=str,
        required=True,
        help='Path to scenario JSON file'
    )
    parser.add_argument(
        '--retry-pending',
        action='store_true',
        help='Retry waiting requests after every release or relinquish'
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
        help='Also write the log to this file'
    )

    args = parser.parse_args(argv)

    _, _, state = run_simulation(
        args.scenario,
        retry_pending=args.retry_pending,
        verbose=args.verbose,
        log_file=args.log_file
    )
    return 0 if state is not None else 1


if __name__ == '__main__':
    sys.exit(main())
