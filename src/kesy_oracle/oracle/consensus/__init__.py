"""Node-mode execution, consensus reduction, and report signing."""

from kesy_oracle.oracle.consensus.aggregation import (
    ERROR_SENTINEL,
    Aggregation,
    FieldsAggregation,
    MajorityAggregation,
    MedianAggregation,
)
from kesy_oracle.oracle.consensus.report import DigestReportSigner, ReportSigner, SignedReport
from kesy_oracle.oracle.consensus.runtime import ConsensusRuntime, LocalDON, NodeContext

__all__ = [
    "ERROR_SENTINEL",
    "Aggregation",
    "ConsensusRuntime",
    "DigestReportSigner",
    "FieldsAggregation",
    "LocalDON",
    "MajorityAggregation",
    "MedianAggregation",
    "NodeContext",
    "ReportSigner",
    "SignedReport",
]
