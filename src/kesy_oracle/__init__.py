"""KESY oracle workflows.

Two consensus-gated workflows run on a decentralized oracle network:
- bridge simulation: pre-validate and dry-run a cross-chain KESY transfer
- compliance sync: propagate frozen Hedera accounts to the Sepolia RejectPolicy
"""

__version__ = "0.1.0"

from kesy_oracle.oracle.config import BridgeSimulationSettings, ComplianceSyncSettings

__all__ = ["__version__", "BridgeSimulationSettings", "ComplianceSyncSettings"]
