from typing import Protocol, Any, Dict, List, Optional
from contextlib import contextmanager
from datetime import datetime, timezone
import json
import logging
import time

from pydantic import BaseModel, Field

logger = logging.getLogger("rotator.events")

LEVEL_INFO = "INFO"
LEVEL_WARN = "WARN"
LEVEL_ERROR = "ERROR"

_LOGGING_LEVELS = {
    LEVEL_INFO: logging.INFO,
    LEVEL_WARN: logging.WARNING,
    LEVEL_ERROR: logging.ERROR,
}


class RotationEvent(BaseModel):
    timestamp: str = Field(default_factory=lambda: datetime.now(timezone.utc).strftime("%Y-%m-%dT%H:%M:%S.%f")[:-3] + "Z")
    level: str = LEVEL_INFO
    run_id: str = Field(..., serialization_alias="runId")
    step: str
    message: str
    data: Dict[str, Any] = Field(default_factory=dict)

    def to_record(self) -> Dict[str, Any]:
        return self.model_dump(by_alias=True, mode="json")


class EventSink(Protocol):
    def emit(self, event: RotationEvent) -> None:
        """Emit a structured run event."""
        ...


class StdOutSink:
    """One JSON line per event on the rotator.events logger."""

    def __init__(self, event_logger: Optional[logging.Logger] = None):
        self._logger = event_logger or logger

    def emit(self, event: RotationEvent) -> None:
        self._logger.log(_LOGGING_LEVELS.get(event.level, logging.INFO), json.dumps(event.to_record(), default=str))


class MemorySink:
    def __init__(self):
        self.events: List[RotationEvent] = []

    def emit(self, event: RotationEvent) -> None:
        self.events.append(event)

    def steps(self) -> List[str]:
        return [e.step for e in self.events]

    def by_step(self, step: str) -> List[RotationEvent]:
        return [e for e in self.events if e.step == step]


class RunReporter:
    """Stamps run id and level onto events for one invocation."""

    def __init__(self, sink: EventSink, run_id: str):
        self.sink = sink
        self.run_id = run_id

    def _emit(self, level: str, step: str, message: str, data: Dict[str, Any]) -> None:
        self.sink.emit(RotationEvent(level=level, run_id=self.run_id, step=step, message=message, data=data))

    def info(self, step: str, message: str, **data: Any) -> None:
        self._emit(LEVEL_INFO, step, message, data)

    def warn(self, step: str, message: str, **data: Any) -> None:
        self._emit(LEVEL_WARN, step, message, data)

    def error(self, step: str, message: str, **data: Any) -> None:
        self._emit(LEVEL_ERROR, step, message, data)

    @contextmanager
    def timed(self, step: str, message: str):
        """Emit `durationMs` when the block finishes; errors are logged and re-raised.

        The yielded dict is merged into the completion event.
        """
        extra: Dict[str, Any] = {}
        start = time.perf_counter()
        try:
            yield extra
        except Exception as e:
            duration_ms = round((time.perf_counter() - start) * 1000, 2)
            error = e.to_dict() if hasattr(e, "to_dict") else {"code": type(e).__name__, "message": str(e)}
            self.error(step, f"{message} failed: {e}", durationMs=duration_ms, error=error)
            raise
        duration_ms = round((time.perf_counter() - start) * 1000, 2)
        self.info(step, f"{message} completed", durationMs=duration_ms, **extra)
