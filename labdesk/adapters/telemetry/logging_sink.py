from __future__ import annotations
"""Telemetry sink that writes events through the `logging` module.

`LoggingSink` is used by the API service so pipeline stages land in the server
log alongside request logs; event level maps onto the logger level. `PrintSink`
and `ListSink` serve the demo script and the dashboard debug panel.
"""
import logging
from typing import List

from labdesk.common.logging import get_logger
from labdesk.core.interfaces import TelemetrySink
from labdesk.core.types import TelemetryEvent

_LEVELS = {"info": logging.INFO, "warn": logging.WARNING, "error": logging.ERROR}


class LoggingSink(TelemetrySink):
    def __init__(self, name: str = "labdesk.telemetry") -> None:
        self.logger = get_logger(name)

    def record(self, event: TelemetryEvent) -> None:
        level = _LEVELS.get(event.get("level", "info"), logging.INFO)
        self.logger.log(
            level,
            "%s session=%s interaction=%s %s",
            event.get("stage"),
            event.get("session_id", ""),
            event.get("interaction_id", ""),
            event.get("payload", {}),
        )


class PrintSink(TelemetrySink):
    """One line per pipeline stage on stdout; used by the demo script."""

    def record(self, event: TelemetryEvent) -> None:
        marker = "!" if event.get("level", "info") != "info" else "-"
        print(f"{marker} {event.get('stage')}: {event.get('payload', {})}")


class ListSink(TelemetrySink):
    """Keeps events in memory; the dashboard shows them in a debug panel."""

    def __init__(self) -> None:
        self.events: List[TelemetryEvent] = []

    def record(self, event: TelemetryEvent) -> None:
        self.events.append(event)

    def stages(self) -> List[str]:
        return [e.get("stage", "") for e in self.events]
