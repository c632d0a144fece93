from __future__ import annotations

from dataclasses import dataclass


@dataclass(frozen=True, slots=True)
class TriggerEvent:
    """A signal emitted by a trigger.

    Triggers (an authorized HTTP request, a cron tick) map an external fact
    into an event. Triggers never perform work.
    """

    type: str
    payload: dict[str, object]


HTTP_REQUEST = "http_request"
CRON_TICK = "cron_tick"
