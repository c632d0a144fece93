"""FastAPI app factory for the bridge simulation HTTP trigger.

Endpoints are intentionally thin: authorize, decode, hand a trigger event to
the workflow, return its payload. Every workflow terminal state (including
``unsupported`` and business errors) is a 200 with a structured body; HTTP
error codes are reserved for requests the workflow never saw.
"""

from __future__ import annotations

import json
import logging

from fastapi import FastAPI, Request
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse
from starlette.concurrency import run_in_threadpool

from kesy_oracle import __version__
from kesy_oracle.oracle.config import BridgeSimulationSettings
from kesy_oracle.oracle.consensus.runtime import LocalDON
from kesy_oracle.oracle.workflow.bridge_simulation import BridgeSimulationWorkflow
from kesy_oracle.oracle.workflow.events import HTTP_REQUEST, TriggerEvent
from kesy_oracle.server.auth import SIGNATURE_HEADER, UnauthorizedTrigger, authorize
from kesy_oracle.server.config import ServerSettings
from kesy_oracle.server.models import HealthResponse, TriggerError

logger = logging.getLogger(__name__)


def _error(status_code: int, error_type: str, message: str) -> JSONResponse:
    body = TriggerError(errorType=error_type, message=message)
    return JSONResponse(status_code=status_code, content=body.model_dump())


def create_app(
    *,
    settings: BridgeSimulationSettings | None = None,
    server_settings: ServerSettings | None = None,
    workflow: BridgeSimulationWorkflow | None = None,
) -> FastAPI:
    settings = settings or BridgeSimulationSettings()
    server_settings = server_settings or ServerSettings()
    workflow = workflow or BridgeSimulationWorkflow(settings, runtime=LocalDON(settings.don))
    allowed_signers = settings.parsed_authorized_signers()

    app = FastAPI(
        title="KESY Oracle Workflows",
        version=__version__,
        description="HTTP trigger for the KESY bridge simulation workflow.",
        openapi_url="/api/openapi.json",
        docs_url="/api/docs",
        redoc_url="/api/redoc",
    )

    # Expose settings for request handlers that want to read it.
    app.state.settings = settings

    origins = server_settings.parsed_cors_origins()
    if origins:
        app.add_middleware(
            CORSMiddleware,
            allow_origins=origins,
            allow_methods=["POST", "GET"],
            allow_headers=["*"],
        )

    if not allowed_signers:
        logger.warning("No authorized signers configured; HTTP trigger accepts any caller")

    @app.get("/api/v1/health", response_model=HealthResponse)
    def health() -> HealthResponse:
        return HealthResponse(
            version=__version__,
            nodes=settings.don.node_count,
            supported_chains=settings.supported_chains,
        )

    @app.post("/api/v1/bridge/simulate")
    async def simulate(request: Request) -> JSONResponse:
        body = await request.body()

        try:
            principal = authorize(body, request.headers.get(SIGNATURE_HEADER), allowed_signers)
        except UnauthorizedTrigger as e:
            return _error(401, "unauthorized", str(e))

        try:
            payload = json.loads(body)
        except ValueError:
            return _error(400, "validation_error", "Request body must be JSON")
        if not isinstance(payload, dict):
            return _error(400, "validation_error", "Request body must be a JSON object")

        event = TriggerEvent(type=HTTP_REQUEST, payload=payload)
        logger.info("HTTP trigger accepted", extra={"principal": principal})
        result = await run_in_threadpool(workflow.handle, event)
        return JSONResponse(status_code=200, content=result)

    return app
