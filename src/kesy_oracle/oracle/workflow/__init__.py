"""Workflow domain concepts.

This package holds first-class types for:
- Trigger events (HTTP requests, cron ticks)
- Per-invocation state machines for both workflows
- The cognitive (LLM-backed) risk analysis step
- The bridge simulation and compliance sync engines

Each invocation is request-scoped: nothing here is persisted between runs.
"""

from kesy_oracle.oracle.workflow.bridge_simulation import BridgeSimulationWorkflow
from kesy_oracle.oracle.workflow.compliance_sync import ComplianceSyncWorkflow
from kesy_oracle.oracle.workflow.events import TriggerEvent

__all__ = ["BridgeSimulationWorkflow", "ComplianceSyncWorkflow", "TriggerEvent"]
