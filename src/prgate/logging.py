from __future__ import annotations

import json
import sys
import time
import traceback
from contextlib import contextmanager
from datetime import datetime, timezone
from typing import Any, Dict, Iterator, Mapping

SENSITIVE_KEY_PARTS = ("token", "secret", "password", "api_key", "apikey", "authorization")
REDACTED = "***"

# Levels mirrored as GitHub workflow commands.
ANNOTATED_LEVELS = frozenset({"warning", "error"})


def escape_workflow_command(value: str) -> str:
    """Escape a string for GitHub workflow command messages."""
    if value is None:
        return ""
    return str(value).replace("%", "%25").replace("\r", "%0D").replace("\n", "%0A")


def is_sensitive_key(key: str) -> bool:
    lowered = key.lower()
    return any(part in lowered for part in SENSITIVE_KEY_PARTS)


def redact(value: Any) -> Any:
    """Mask values under sensitive keys, descending into dicts and lists."""
    if isinstance(value, Mapping):
        return {
            str(k): (REDACTED if is_sensitive_key(str(k)) else redact(v))
            for k, v in value.items()
        }
    if isinstance(value, (list, tuple)):
        return [redact(item) for item in value]
    return value


class GateLogger:
    """
    One JSON object per line on stderr, plus ``::warning::``/``::error::``
    workflow commands so failures surface as check annotations.

    ``bind`` returns a logger that stamps extra fields on every record;
    annotations carry the ``[prefix]`` of the tool that emitted them.
    """

    def __init__(self, run_id: str, prefix: str = "policy-gate", **context: Any):
        self.run_id = run_id
        self.prefix = prefix
        self.context: Dict[str, Any] = dict(context)

    def bind(self, **fields: Any) -> "GateLogger":
        return GateLogger(self.run_id, self.prefix, **{**self.context, **fields})

    def info(self, message: str, **fields: Any) -> None:
        self._emit("info", message, fields)

    def warning(self, message: str, **fields: Any) -> None:
        self._emit("warning", message, fields)

    def error(self, message: str, **fields: Any) -> None:
        self._emit("error", message, fields)

    def exception(self, message: str, exc: BaseException, **fields: Any) -> None:
        stack = "".join(traceback.format_exception(type(exc), exc, exc.__traceback__))
        self._emit("error", message, {"error": str(exc), "traceback": stack, **fields})

    @contextmanager
    def stage(self, name: str) -> Iterator[None]:
        """Log ``stage_start``/``stage_end`` around a block, with duration and status."""
        started = time.monotonic()
        self.info("stage_start", stage=name)
        status = "ok"
        try:
            yield
        except Exception as exc:
            status = "error"
            # The caller reports the failure; this only records where it happened.
            self.info("stage_error", stage=name, error_type=type(exc).__name__)
            raise
        finally:
            elapsed_ms = int((time.monotonic() - started) * 1000)
            self.info("stage_end", stage=name, duration_ms=elapsed_ms, status=status)

    def _record(self, level: str, message: str, fields: Mapping[str, Any]) -> Dict[str, Any]:
        record: Dict[str, Any] = {
            "timestamp": datetime.now(timezone.utc).isoformat(),
            "level": level,
            "run_id": self.run_id,
            "message": message,
        }
        record.update(redact({**self.context, **fields}))
        return record

    def _emit(self, level: str, message: str, fields: Mapping[str, Any]) -> None:
        stream = sys.stderr
        record = self._record(level, message, fields)
        stream.write(json.dumps(record, ensure_ascii=False, default=str) + "\n")
        if level in ANNOTATED_LEVELS:
            text = f"[{self.prefix}] {message}" if self.prefix else message
            stream.write(f"::{level}::{escape_workflow_command(text)}\n")
        stream.flush()
