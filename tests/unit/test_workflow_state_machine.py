"""Unit tests for the per-invocation workflow state machines.

These tests assert that illegal transitions fail loudly and that a run keeps
the path it took.
"""

from __future__ import annotations

import pytest

from kesy_oracle.oracle.workflow.state_machine import (
    BRIDGE_TRANSITIONS,
    COMPLIANCE_TRANSITIONS,
    BridgeSimulationState,
    ComplianceSyncState,
    IllegalTransitionError,
    bridge_run,
    compliance_run,
    is_terminal,
    transition,
)


def test_transition_rejects_illegal_transitions() -> None:
    with pytest.raises(IllegalTransitionError):
        transition(
            current=BridgeSimulationState.START,
            to=BridgeSimulationState.SIMULATED,
            table=BRIDGE_TRANSITIONS,
        )


def test_bridge_happy_path_trace() -> None:
    run = bridge_run()
    for state in (
        BridgeSimulationState.DIRECTION_VALIDATED,
        BridgeSimulationState.PREFLIGHT_CHECKED,
        BridgeSimulationState.SIMULATED,
        BridgeSimulationState.ANALYZED,
        BridgeSimulationState.RESPONDED,
    ):
        assert not run.finished
        run.advance(state)

    assert run.finished
    assert run.trace() == [
        "start",
        "direction_validated",
        "preflight_checked",
        "simulated",
        "analyzed",
        "responded",
    ]


def test_simulated_cannot_fail() -> None:
    run = bridge_run()
    run.advance(BridgeSimulationState.DIRECTION_VALIDATED)
    run.advance(BridgeSimulationState.PREFLIGHT_CHECKED)
    run.advance(BridgeSimulationState.SIMULATED)

    with pytest.raises(IllegalTransitionError):
        run.advance(BridgeSimulationState.FAILED)
    assert run.state == BridgeSimulationState.SIMULATED


@pytest.mark.parametrize(
    "state",
    [
        BridgeSimulationState.UNSUPPORTED_DIRECTION,
        BridgeSimulationState.UNKNOWN_CHAIN,
        BridgeSimulationState.RESPONDED,
        BridgeSimulationState.FAILED,
    ],
)
def test_bridge_terminal_states(state: BridgeSimulationState) -> None:
    assert is_terminal(state, BRIDGE_TRANSITIONS)


def test_compliance_branches_are_terminal() -> None:
    for end in (ComplianceSyncState.NO_UPDATE_NEEDED, ComplianceSyncState.POLICY_UPDATE_SUBMITTED):
        run = compliance_run()
        run.advance(ComplianceSyncState.EVENTS_FETCHED)
        run.advance(end)
        assert run.finished
        assert is_terminal(end, COMPLIANCE_TRANSITIONS)

    run = compliance_run()
    with pytest.raises(IllegalTransitionError):
        run.advance(ComplianceSyncState.POLICY_UPDATE_SUBMITTED)
