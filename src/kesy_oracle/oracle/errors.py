"""Error taxonomy shared by both workflows.

Workflow boundaries turn these into structured payloads; callers never see a
bare traceback for an expected failure.
"""

from __future__ import annotations


class OracleWorkflowError(Exception):
    """Base class for expected workflow failures."""


class RequestValidationError(OracleWorkflowError):
    """Unknown chain identifier or malformed request. Never retried."""


class UnsupportedOperation(OracleWorkflowError):
    """The requested direction/feature cannot be simulated."""

    def __init__(self, message: str, *, recommendation: str) -> None:
        super().__init__(message)
        self.recommendation = recommendation


class UpstreamCallError(OracleWorkflowError):
    """An upstream call failed on enough nodes that the step has no usable value."""


class ConsensusFailure(OracleWorkflowError):
    """Not enough agreeing node responses to reduce a step."""

    def __init__(
        self, message: str, *, step: str = "", responses: int = 0, required: int = 0
    ) -> None:
        super().__init__(message)
        self.step = step
        self.responses = responses
        self.required = required


class UnknownChainError(RequestValidationError):
    """A chain identifier is missing from the chain-selector table."""

    def __init__(self, message: str, *, supported: list[str]) -> None:
        super().__init__(message)
        self.supported = supported
