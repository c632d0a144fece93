"""Clients for the chains and ledgers the workflows talk to."""

from kesy_oracle.oracle.chain.delivery import (
    DeliveryClient,
    DeliveryOutcome,
    DeliveryStatus,
    ForwarderDeliveryClient,
)
from kesy_oracle.oracle.chain.mirror import (
    AddressResolver,
    ComplianceEvent,
    MirrorNodeClient,
    StaticAddressResolver,
)
from kesy_oracle.oracle.chain.rpc import JsonRpcClient, RpcReply, parse_rpc_body

__all__ = [
    "AddressResolver",
    "ComplianceEvent",
    "DeliveryClient",
    "DeliveryOutcome",
    "DeliveryStatus",
    "ForwarderDeliveryClient",
    "JsonRpcClient",
    "MirrorNodeClient",
    "RpcReply",
    "StaticAddressResolver",
    "parse_rpc_body",
]
