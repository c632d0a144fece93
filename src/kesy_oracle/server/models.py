"""Pydantic models for the REST trigger."""

from __future__ import annotations

from typing import Literal

from pydantic import BaseModel


class HealthResponse(BaseModel):
    status: Literal["ok"] = "ok"
    version: str
    nodes: int
    supported_chains: list[str]


class TriggerError(BaseModel):
    status: Literal["error"] = "error"
    errorType: str
    message: str
