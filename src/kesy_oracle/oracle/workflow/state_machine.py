from __future__ import annotations

from dataclasses import dataclass, field
from enum import Enum
from typing import Generic, TypeVar


class BridgeSimulationState(str, Enum):
    START = "start"
    DIRECTION_VALIDATED = "direction_validated"
    PREFLIGHT_CHECKED = "preflight_checked"
    SIMULATED = "simulated"
    ANALYZED = "analyzed"
    RESPONDED = "responded"
    UNSUPPORTED_DIRECTION = "unsupported_direction"
    UNKNOWN_CHAIN = "unknown_chain"
    FAILED = "failed"


class ComplianceSyncState(str, Enum):
    START = "start"
    EVENTS_FETCHED = "events_fetched"
    NO_UPDATE_NEEDED = "no_update_needed"
    POLICY_UPDATE_SUBMITTED = "policy_update_submitted"
    FAILED = "failed"


_B = BridgeSimulationState
_C = ComplianceSyncState

BRIDGE_TRANSITIONS: dict[Enum, set[Enum]] = {
    _B.START: {_B.DIRECTION_VALIDATED, _B.UNSUPPORTED_DIRECTION, _B.UNKNOWN_CHAIN, _B.FAILED},
    _B.DIRECTION_VALIDATED: {_B.PREFLIGHT_CHECKED, _B.FAILED},
    _B.PREFLIGHT_CHECKED: {_B.SIMULATED, _B.FAILED},
    _B.SIMULATED: {_B.ANALYZED},
    _B.ANALYZED: {_B.RESPONDED},
}

COMPLIANCE_TRANSITIONS: dict[Enum, set[Enum]] = {
    _C.START: {_C.EVENTS_FETCHED, _C.FAILED},
    _C.EVENTS_FETCHED: {_C.NO_UPDATE_NEEDED, _C.POLICY_UPDATE_SUBMITTED, _C.FAILED},
}

S = TypeVar("S", bound=Enum)


class IllegalTransitionError(ValueError):
    pass


def transition(*, current: S, to: S, table: dict[Enum, set[Enum]]) -> S:
    allowed = table.get(current, set())
    if to not in allowed:
        raise IllegalTransitionError(f"Illegal transition: {current.value} -> {to.value}")
    return to


def is_terminal(state: Enum, table: dict[Enum, set[Enum]]) -> bool:
    return not table.get(state)


@dataclass(slots=True)
class WorkflowRun(Generic[S]):
    """State of one workflow invocation.

    Request-scoped: created by a trigger, discarded with the response. The
    visited path is kept so a terminal payload can say how it got there.
    """

    state: S
    table: dict[Enum, set[Enum]]
    path: list[S] = field(default_factory=list)

    def __post_init__(self) -> None:
        if not self.path:
            self.path.append(self.state)

    def advance(self, to: S) -> S:
        self.state = transition(current=self.state, to=to, table=self.table)
        self.path.append(self.state)
        return self.state

    @property
    def finished(self) -> bool:
        return is_terminal(self.state, self.table)

    def trace(self) -> list[str]:
        return [s.value for s in self.path]


def bridge_run() -> WorkflowRun[BridgeSimulationState]:
    return WorkflowRun(state=BridgeSimulationState.START, table=BRIDGE_TRANSITIONS)


def compliance_run() -> WorkflowRun[ComplianceSyncState]:
    return WorkflowRun(state=ComplianceSyncState.START, table=COMPLIANCE_TRANSITIONS)
