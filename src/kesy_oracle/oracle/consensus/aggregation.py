"""Consensus reduction policies.

A policy collapses the per-node observations of one step into a single agreed
value, or raises :class:`ConsensusFailure`. ``required`` is the number of
agreeing observations the runtime demands for the step.

Node-local closures report an upstream failure as :data:`ERROR_SENTINEL`
instead of raising, so a minority of failing nodes is outvoted rather than
aborting the step.
"""

from __future__ import annotations

from collections import Counter
from collections.abc import Callable, Mapping, Sequence
from dataclasses import dataclass, field
from typing import Any, Protocol, TypeVar

from ..errors import ConsensusFailure

ERROR_SENTINEL = "error"

T = TypeVar("T")


def is_error(value: object) -> bool:
    return isinstance(value, str) and value == ERROR_SENTINEL


class Aggregation(Protocol):
    """A named reduction policy."""

    name: str

    def reduce(self, values: Sequence[Any], *, required: int) -> Any: ...


@dataclass(frozen=True, slots=True)
class MedianAggregation:
    """Median of healthy observations.

    Returns the lower median so the agreed value is always one a node actually
    observed. Observations are ordered by ``key`` when one is given (hex words
    need a numeric key), otherwise by their natural ordering. Byte-identical
    observations collapse to themselves.
    """

    key: Callable[[Any], Any] | None = None
    name: str = "median"

    def reduce(self, values: Sequence[Any], *, required: int) -> Any:
        try:
            healthy = sorted((v for v in values if not is_error(v)), key=self.key)
        except TypeError as e:
            raise ConsensusFailure(
                f"median: observations cannot be ordered ({e})",
                responses=len(values),
                required=required,
            ) from e
        if len(healthy) >= required:
            return healthy[(len(healthy) - 1) // 2]

        failed = len(values) - len(healthy)
        if failed >= required:
            # The nodes agree the upstream call failed; that is itself a consensus.
            return ERROR_SENTINEL

        raise ConsensusFailure(
            f"median: {len(healthy)} healthy of {len(values)} responses, need {required}",
            responses=len(values),
            required=required,
        )


@dataclass(frozen=True, slots=True)
class MajorityAggregation:
    """The most common observation, if enough nodes report it verbatim."""

    name: str = "majority"

    def reduce(self, values: Sequence[Any], *, required: int) -> Any:
        if not values:
            raise ConsensusFailure("majority: no responses", required=required)

        counts = Counter(values)
        # Deterministic tie-break on the textual form.
        value, count = max(counts.items(), key=lambda item: (item[1], repr(item[0])))
        if count >= required:
            return value

        raise ConsensusFailure(
            f"majority: best value seen {count} of {len(values)} times, need {required}",
            responses=len(values),
            required=required,
        )


@dataclass(frozen=True, slots=True)
class FieldsAggregation:
    """Reduce each logical field of mapping-shaped observations independently."""

    fields: Mapping[str, Aggregation] = field(default_factory=dict)
    name: str = "fields"

    def reduce(self, values: Sequence[Any], *, required: int) -> dict[str, Any]:
        reduced: dict[str, Any] = {}
        for key, policy in self.fields.items():
            column = [_field_of(v, key) for v in values]
            try:
                reduced[key] = policy.reduce(column, required=required)
            except ConsensusFailure as e:
                raise ConsensusFailure(
                    f"field {key!r}: {e}", responses=e.responses, required=e.required
                ) from e
        return reduced


def _field_of(observation: Any, key: str) -> Any:
    if isinstance(observation, Mapping):
        return observation.get(key, ERROR_SENTINEL)
    return ERROR_SENTINEL


def median(key: Callable[[Any], Any] | None = None) -> MedianAggregation:
    return MedianAggregation(key=key)


def majority() -> MajorityAggregation:
    return MajorityAggregation()


def fields(**policies: Aggregation) -> FieldsAggregation:
    return FieldsAggregation(fields=dict(policies))
