from __future__ import annotations

from typing import TextIO
import json
import logging
import sys

from .models import CardCounts

logger = logging.getLogger(__name__)

BUSY_TEXT = "Anki is active"
ERROR_TEXT = "Anki error"


def format_counts(counts: CardCounts, output: str = "verbose") -> str:
    due, new = counts.total_due, counts.new
    text = f"Anki - due: {due}, new: {new}"
    if output == "compact":
        return f"{due} / {new}"
    if output == "json":
        return json.dumps({"state": "ok", "due": due, "new": new, "text": text})
    return text


class Reporter:
    """Writes one line per poll outcome to ``stream``."""

    def __init__(self, output: str = "verbose", stream: TextIO | None = None) -> None:
        self.output = output
        self.stream = stream

    def _emit(self, line: str) -> None:
        stream = self.stream or sys.stdout
        stream.write(line + "\n")
        stream.flush()

    def counts(self, counts: CardCounts) -> None:
        self._emit(format_counts(counts, self.output))

    def busy(self) -> None:
        if self.output == "json":
            self._emit(json.dumps({"state": "busy", "due": None, "new": None, "text": BUSY_TEXT}))
        elif self.output == "compact":
            self._emit("active")
        else:
            self._emit(BUSY_TEXT)

    def error(self, exc: Exception) -> None:
        logger.error("%s: %s", ERROR_TEXT, exc)
        if self.output == "json":
            self._emit(
                json.dumps(
                    {"state": "error", "due": None, "new": None, "text": ERROR_TEXT, "detail": str(exc)}
                )
            )
        elif self.output == "compact":
            self._emit("error")
        else:
            self._emit(ERROR_TEXT)
