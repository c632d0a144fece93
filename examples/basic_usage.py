#!/usr/bin/env python3
"""Programmatic bridge simulation example.

This demonstrates using the workflow components directly:

* load settings from `.env`
* run the bridge simulation across a local pool of oracle nodes
* print the advisory payload

Chains, amount and addresses are passed as arguments (not read from `.env`).
"""

from __future__ import annotations

import argparse
import json
from typing import Sequence

from kesy_oracle.oracle.config import BridgeSimulationSettings
from kesy_oracle.oracle.consensus.runtime import LocalDON
from kesy_oracle.oracle.logging import configure_logging
from kesy_oracle.oracle.workflow.bridge_simulation import BridgeSimulationWorkflow
from kesy_oracle.oracle.workflow.models import BridgeRequest


def _parse_args(argv: Sequence[str] | None = None) -> argparse.Namespace:
    parser = argparse.ArgumentParser(description="Simulate a KESY bridge transfer.")
    parser.add_argument("--source", default="sepolia", help='Source chain, e.g. "sepolia"')
    parser.add_argument("--dest", default="hedera", help='Destination chain, e.g. "hedera"')
    parser.add_argument("--amount", required=True, help='Human-readable amount, e.g. "100"')
    parser.add_argument("--sender", required=True, help="Sender EVM address")
    parser.add_argument("--receiver", required=True, help="Receiver EVM address")
    return parser.parse_args(argv)


def main(argv: Sequence[str] | None = None) -> int:
    args = _parse_args(argv)

    settings = BridgeSimulationSettings()
    configure_logging(settings.log_level)

    workflow = BridgeSimulationWorkflow(settings, runtime=LocalDON(settings.don))
    request = BridgeRequest(
        source_chain=args.source,
        dest_chain=args.dest,
        amount=args.amount,
        sender_address=args.sender,
        receiver_address=args.receiver,
    )

    outcome = workflow.execute(request)

    print(json.dumps(outcome.payload, indent=2, ensure_ascii=False))
    print(f"Path: {' -> '.join(outcome.trace)}")
    return 0 if outcome.payload["status"] != "error" else 1


if __name__ == "__main__":
    raise SystemExit(main())
