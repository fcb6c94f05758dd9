from __future__ import annotations

import json
from pathlib import Path
from typing import TextIO

from ..config import EngineConfig
from .events import TelemetryEvent


class TelemetryLogger:
    """Appends checkout events to a JSONL file. Off unless the engine config enables it."""

    def __init__(self, log_file: str | Path, *, enabled: bool = False, mirror: TextIO | None = None) -> None:
        self.log_file = Path(log_file)
        self.enabled = enabled
        self.mirror = mirror

    @classmethod
    def from_config(cls, config: EngineConfig, *, mirror: TextIO | None = None) -> TelemetryLogger:
        return cls(config.telemetry_file, enabled=config.telemetry_enabled, mirror=mirror)

    def emit(self, event: TelemetryEvent) -> bool:
        if not self.enabled:
            return False
        record = json.dumps(event.to_dict(), sort_keys=True, default=str) + "\n"
        self.log_file.parent.mkdir(parents=True, exist_ok=True)
        with self.log_file.open("a", encoding="utf-8") as fp:
            fp.write(record)
        if self.mirror is not None:
            self.mirror.write(record)
        return True

    def read(self) -> list[dict]:
        """Events written so far, oldest first."""
        if not self.log_file.exists():
            return []
        with self.log_file.open(encoding="utf-8") as fp:
            return [json.loads(line) for line in fp if line.strip()]
