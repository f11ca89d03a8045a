"""
Engine output events.

Every line the engine writes becomes one of three variants. Consumers that only
need the wire form call `to_payload()`, which reproduces what the desktop front
end has always received: the parsed JSON value, the raw string, or the
`launcher_terminated` marker.
"""

import json
from dataclasses import dataclass
from typing import Any

TERMINATED_EVENT_TYPE = "launcher_terminated"


@dataclass(frozen=True)
class StructuredEvent:
    """A stdout line that parsed as JSON."""

    run_id: str
    value: Any


@dataclass(frozen=True)
class RawEvent:
    """A stdout line that was not JSON, or any stderr line."""

    run_id: str
    text: str
    stream: str = "stdout"


@dataclass(frozen=True)
class TerminatedEvent:
    """Emitted exactly once per run, after the engine process has exited."""

    run_id: str
    exit_code: int | None = None


EngineEvent = StructuredEvent | RawEvent | TerminatedEvent


def parse_stdout_line(run_id: str, line: str) -> EngineEvent | None:
    """Turns one stdout line into an event. Blank lines produce nothing."""
    text = line.strip()
    if not text:
        return None
    try:
        return StructuredEvent(run_id, json.loads(text))
    except json.JSONDecodeError:
        return RawEvent(run_id, text)


def parse_stderr_line(run_id: str, line: str) -> EngineEvent | None:
    """Stderr is never parsed; every non-blank line is passed on as text."""
    text = line.strip()
    if not text:
        return None
    return RawEvent(run_id, text, stream="stderr")


def to_payload(event: EngineEvent) -> Any:
    """Returns the JSON-compatible value sent to front ends for an event."""
    if isinstance(event, StructuredEvent):
        return event.value
    if isinstance(event, RawEvent):
        return event.text
    if isinstance(event, TerminatedEvent):
        return {"type": TERMINATED_EVENT_TYPE}
    raise TypeError(f"Unknown engine event: {event!r}")
