"""Trigger adapters for kesy-oracle.

- HTTP trigger (FastAPI) for the bridge simulation
- Cron trigger for the compliance sync

Design intent:
- Keep workflow logic in `kesy_oracle.oracle.*`
- Keep trigger-specific concerns (routing, auth, scheduling) here
"""

from __future__ import annotations

__all__ = ["create_app"]

from kesy_oracle.server.app import create_app
