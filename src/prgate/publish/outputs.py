from __future__ import annotations

from pathlib import Path
from typing import Dict, Optional

from ..logging import GateLogger


class OutputWriter:
    """Append step outputs to ``$GITHUB_OUTPUT``; log them when it is unset."""

    def __init__(self, output_path: Optional[str], logger: GateLogger):
        self.output_path = Path(output_path) if output_path else None
        self.logger = logger
        self.values: Dict[str, str] = {}

    def set(self, key: str, value: str) -> None:
        value = str(value).replace("\r", " ").replace("\n", " ")
        self.values[key] = value
        if self.output_path is None:
            self.logger.info("output", key=key, value=value, sink="log")
            return
        with open(self.output_path, "a", encoding="utf-8") as f:
            f.write(f"{key}={value}\n")
        self.logger.info("output", key=key, value=value, sink="github_output")

    def set_bool(self, key: str, value: bool) -> None:
        self.set(key, "true" if value else "false")
