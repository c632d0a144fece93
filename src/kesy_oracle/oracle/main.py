"""CLI entrypoint for the oracle workflows."""

from __future__ import annotations

import argparse
import json
import logging
import sys

from pydantic import ValidationError

from kesy_oracle import __version__
from kesy_oracle.oracle.chain.delivery import ForwarderDeliveryClient
from kesy_oracle.oracle.chain.mirror import StaticAddressResolver
from kesy_oracle.oracle.config import BridgeSimulationSettings, ComplianceSyncSettings
from kesy_oracle.oracle.consensus.report import DigestReportSigner
from kesy_oracle.oracle.consensus.runtime import LocalDON
from kesy_oracle.oracle.logging import configure_logging
from kesy_oracle.oracle.workflow.bridge_simulation import BridgeSimulationWorkflow
from kesy_oracle.oracle.workflow.compliance_sync import ComplianceSyncWorkflow
from kesy_oracle.oracle.workflow.events import CRON_TICK, HTTP_REQUEST, TriggerEvent

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="kesy-oracle",
        description="Consensus-gated KESY bridge simulation and compliance sync workflows",
    )
    parser.add_argument("--version", action="version", version=f"kesy-oracle {__version__}")

    subparsers = parser.add_subparsers(dest="command", required=True)

    simulate = subparsers.add_parser(
        "simulate-bridge",
        help="Pre-flight and dry-run a bridge transfer, then print the advisory JSON",
    )
    simulate.add_argument("--source", dest="source_chain", required=True, help='e.g. "sepolia"')
    simulate.add_argument("--dest", dest="dest_chain", required=True, help='e.g. "hedera"')
    simulate.add_argument("--amount", required=True, help='Human-readable amount, e.g. "100"')
    simulate.add_argument("--sender", dest="sender_address", required=True)
    simulate.add_argument("--receiver", dest="receiver_address", required=True)

    sync = subparsers.add_parser(
        "compliance-sync",
        help="Propagate frozen Hedera accounts to the Sepolia RejectPolicy",
    )
    sync.add_argument(
        "--watch",
        action="store_true",
        help="Keep running on KESY_COMPLIANCE_SCHEDULE instead of running once",
    )

    serve = subparsers.add_parser("serve", help="Serve the bridge simulation HTTP trigger")
    serve.add_argument("--host", default=None, help="Bind host (default: KESY_SERVER_HOST)")
    serve.add_argument(
        "--port", type=int, default=None, help="Bind port (default: KESY_SERVER_PORT)"
    )

    return parser


def _bridge_workflow(settings: BridgeSimulationSettings) -> BridgeSimulationWorkflow:
    return BridgeSimulationWorkflow(settings, runtime=LocalDON(settings.don))


def _compliance_workflow(
    settings: ComplianceSyncSettings,
) -> tuple[ComplianceSyncWorkflow, ForwarderDeliveryClient]:
    delivery = ForwarderDeliveryClient(
        url=settings.forwarder_url, chain_selector=settings.sepolia_chain_selector
    )
    workflow = ComplianceSyncWorkflow(
        settings,
        runtime=LocalDON(settings.don),
        signer=DigestReportSigner(),
        delivery=delivery,
        resolver=StaticAddressResolver(settings.address_overrides),
    )
    return workflow, delivery


def _run_simulate(args: argparse.Namespace) -> int:
    settings = BridgeSimulationSettings()
    configure_logging(settings.log_level)

    event = TriggerEvent(
        type=HTTP_REQUEST,
        payload={
            "sourceChain": args.source_chain,
            "destChain": args.dest_chain,
            "amount": args.amount,
            "senderAddress": args.sender_address,
            "receiverAddress": args.receiver_address,
        },
    )
    payload = _bridge_workflow(settings).handle(event)
    print(json.dumps(payload, indent=2, ensure_ascii=False))
    return 0 if payload.get("status") in {"simulated", "unsupported"} else 4


def _run_compliance(args: argparse.Namespace) -> int:
    # Imported lazily: croniter is only needed for the watch loop.
    from kesy_oracle.server.scheduler import ComplianceSyncScheduler, CronSchedule

    settings = ComplianceSyncSettings()
    configure_logging(settings.log_level)

    workflow, delivery = _compliance_workflow(settings)
    try:
        if args.watch:
            scheduler = ComplianceSyncScheduler(workflow, CronSchedule(settings.schedule))
            try:
                scheduler.run_forever()
            except KeyboardInterrupt:
                scheduler.stop()
            return 0

        result = workflow.handle(TriggerEvent(type=CRON_TICK, payload={}))
        print(result)
        return 0 if not result.startswith(("Failed", "Consensus failure")) else 4
    finally:
        delivery.close()


def _run_serve(args: argparse.Namespace) -> int:
    import uvicorn

    from kesy_oracle.server.app import create_app
    from kesy_oracle.server.config import ServerSettings

    settings = BridgeSimulationSettings()
    server_settings = ServerSettings()
    configure_logging(settings.log_level)

    app = create_app(settings=settings, server_settings=server_settings)
    uvicorn.run(
        app,
        host=args.host or server_settings.host,
        port=args.port or server_settings.port,
        log_config=None,
    )
    return 0


def main(argv: list[str] | None = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        if args.command == "simulate-bridge":
            return _run_simulate(args)
        if args.command == "compliance-sync":
            return _run_compliance(args)
        if args.command == "serve":
            return _run_serve(args)

        logger.error("Unknown command", extra={"command": args.command})
        return 2

    except (ValidationError, ValueError) as e:
        # Settings failures surface before logging is configured.
        print("Configuration error (check your .env):", file=sys.stderr)
        print(e, file=sys.stderr)
        return 2

    except Exception:
        logger.exception("Command failed")
        return 1


if __name__ == "__main__":
    raise SystemExit(main())
