"""Node-local execution with consensus reduction.

A step hands a closure ``fn(node) -> value`` and a reduction policy to the
runtime. Every participating node runs the closure independently against its
own HTTP session; the runtime gathers the observations and reduces them before
returning. Steps are therefore strictly sequential from the caller's point of
view, and parallelism only exists inside one step.

Closures must be deterministic given identical inputs: no wall-clock values
or random ids in request bodies, or honest nodes stop agreeing.
"""

from __future__ import annotations

import logging
from collections.abc import Callable
from concurrent.futures import ThreadPoolExecutor
from dataclasses import dataclass
from typing import Any, Protocol

import requests

from ..config import NodeConfig
from ..errors import ConsensusFailure
from ..logging import NodeLoggerAdapter, node_logger
from .aggregation import Aggregation

logger = logging.getLogger(__name__)

SessionFactory = Callable[[int], requests.Session]


@dataclass(frozen=True, slots=True)
class NodeContext:
    """What a node-local closure may touch: its own session and its own logger."""

    node_id: int
    http: requests.Session
    log: NodeLoggerAdapter
    timeout: float


NodeFn = Callable[[NodeContext], Any]


class ConsensusRuntime(Protocol):
    def run_in_node_mode(self, fn: NodeFn, aggregation: Aggregation, *, step: str) -> Any: ...


class _Dropped:
    """Marker for a node that produced no observation."""


_DROPPED = _Dropped()


def _default_session(_node_id: int) -> requests.Session:
    return requests.Session()


class LocalDON:
    """Runs each node-mode step on a local pool of simulated oracle nodes.

    Stands in for the node-consensus runtime: real deployments replace it with
    the network's own runtime behind the same ``run_in_node_mode`` contract.
    """

    def __init__(
        self,
        config: NodeConfig,
        *,
        session_factory: SessionFactory | None = None,
    ) -> None:
        self.config = config
        self._session_factory = session_factory or _default_session

    @property
    def node_count(self) -> int:
        return self.config.node_count

    def run_in_node_mode(self, fn: NodeFn, aggregation: Aggregation, *, step: str) -> Any:
        required = self.config.quorum
        workers = self.config.max_workers or self.node_count

        logger.debug(
            "Dispatching node-mode step",
            extra={"step": step, "nodes": self.node_count, "policy": aggregation.name},
        )

        with ThreadPoolExecutor(max_workers=workers, thread_name_prefix=f"don-{step}") as pool:
            futures = [
                pool.submit(self._run_node, fn, node_id, step) for node_id in range(self.node_count)
            ]
            observations = [f.result() for f in futures]

        responses = [o for o in observations if o is not _DROPPED]
        if len(responses) < required:
            raise ConsensusFailure(
                f"Step {step!r}: {len(responses)} of {self.node_count} nodes responded, "
                f"need {required}",
                step=step,
                responses=len(responses),
                required=required,
            )

        try:
            value = aggregation.reduce(responses, required=required)
        except ConsensusFailure as e:
            raise ConsensusFailure(
                f"Step {step!r}: {e}", step=step, responses=e.responses, required=e.required
            ) from e

        logger.info(
            "Consensus reached",
            extra={"step": step, "responses": len(responses), "policy": aggregation.name},
        )
        return value

    def _run_node(self, fn: NodeFn, node_id: int, step: str) -> Any:
        log = node_logger(__name__, node_id=node_id, step=step)
        session = self._session_factory(node_id)
        try:
            ctx = NodeContext(
                node_id=node_id,
                http=session,
                log=log,
                timeout=self.config.request_timeout_seconds,
            )
            return fn(ctx)
        except Exception:
            # A crashed closure is a dropout, not a vote.
            log.exception("Node-local execution failed")
            return _DROPPED
        finally:
            session.close()
