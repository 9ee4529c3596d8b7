"""Verdict progress events and their server-sent-events encoding."""

from __future__ import annotations

import json
from dataclasses import dataclass, field
from typing import Any, Literal

EventName = Literal["start", "phase", "complete", "error"]
EVENT_NAMES: tuple[str, ...] = ("start", "phase", "complete", "error")


@dataclass(frozen=True)
class VerdictEvent:
    """One step of a verdict run: ``start``, ``phase``, ``complete`` or ``error``."""

    event: EventName
    data: dict[str, Any] = field(default_factory=dict)


def encode_sse(event: VerdictEvent) -> str:
    """Encode an event as an SSE frame (``event:`` + ``data:`` + blank line)."""
    payload = json.dumps(event.data, ensure_ascii=False, default=str)
    return f"event: {event.event}\ndata: {payload}\n\n"


class SSEDecoder:
    """Incremental SSE parser; frames may be split across chunks.

    Unknown event names and non-JSON data lines are skipped.
    """

    def __init__(self) -> None:
        self._buffer = ""

    def feed(self, chunk: str) -> list[VerdictEvent]:
        """Add a chunk of stream text and return every completed event."""
        self._buffer += chunk.replace("\r\n", "\n")
        events: list[VerdictEvent] = []

        while "\n\n" in self._buffer:
            frame, self._buffer = self._buffer.split("\n\n", 1)
            event = self._parse_frame(frame)
            if event is not None:
                events.append(event)

        return events

    @staticmethod
    def _parse_frame(frame: str) -> VerdictEvent | None:
        name = ""
        data_lines: list[str] = []
        for line in frame.split("\n"):
            if line.startswith("event:"):
                name = line[len("event:") :].strip()
            elif line.startswith("data:"):
                data_lines.append(line[len("data:") :].strip())

        if name not in EVENT_NAMES or not data_lines:
            return None
        try:
            data = json.loads("\n".join(data_lines))
        except json.JSONDecodeError:
            return None
        if not isinstance(data, dict):
            return None
        return VerdictEvent(event=name, data=data)  # type: ignore[arg-type]


@dataclass
class VerdictProgress:
    """Client-side view of a running verdict.

    Phases are upserted by their ``phase`` key so replays do not duplicate
    them; the latest non-null verdict payload wins.
    """

    running: bool = False
    current_phase: str | None = None
    phases: list[dict[str, Any]] = field(default_factory=list)
    verdict: dict[str, Any] | None = None
    error: str | None = None
    result: dict[str, Any] | None = None

    def apply(self, event: VerdictEvent) -> None:
        data = event.data
        if event.event == "start":
            self.running = True
            self.error = None
        elif event.event == "phase":
            phase = data.get("phase")
            if not phase:
                return
            self.current_phase = phase
            for i, existing in enumerate(self.phases):
                if existing.get("phase") == phase:
                    self.phases[i] = {**existing, **data}
                    break
            else:
                self.phases.append(dict(data))
            if data.get("verdict") is not None:
                self.verdict = data["verdict"]
        elif event.event == "complete":
            self.running = False
            self.result = dict(data)
        elif event.event == "error":
            self.running = False
            self.error = str(data.get("error", "unknown error"))

    def phase_status(self, phase: str) -> str | None:
        return next((p.get("status") for p in self.phases if p.get("phase") == phase), None)
