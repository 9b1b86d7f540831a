"""
Console logging for the GA tracking checker.
Plain progress lines for humans, [STRUCTURED] JSON lines for tooling.
"""

import json
import sys
import time
from typing import Dict, Optional


class UnifiedLogger:
    """Unified logging system for all output types"""

    def __init__(self, enable_debug: bool = False, stream=None):
        self.enable_debug = enable_debug
        self._stream = stream

    @property
    def stream(self):
        # Resolved lazily so pytest's capsys replacement of sys.stdout is honoured
        return self._stream if self._stream is not None else sys.stdout

    def _write(self, line: str) -> None:
        print(line, file=self.stream, flush=True)

    def log_structured(self, log_type: str, event_name: str, data: Dict, metadata: Optional[Dict] = None) -> None:
        """Output a structured log entry as a single JSON line"""
        log_entry = {
            "timestamp": time.time(),
            "type": log_type,
            "event": event_name,
            "data": data,
            "metadata": metadata or {}
        }
        self._write(f"[STRUCTURED] {json.dumps(log_entry, ensure_ascii=False, separators=(',', ':'))}")

    def log_debug(self, message: str) -> None:
        """Log debug message if debug mode is enabled"""
        if self.enable_debug:
            self._write(f"DEBUG: {message}")

    def log_info(self, message: str) -> None:
        """Log informational message"""
        self._write(message)

    def log_error(self, message: str) -> None:
        """Log error message"""
        self._write(f"ERROR: {message}")


# Global logger instance
unified_logger = UnifiedLogger()


def set_debug_mode(enabled: bool) -> None:
    unified_logger.enable_debug = enabled
