from __future__ import annotations

from dataclasses import dataclass
from pathlib import Path


@dataclass(frozen=True)
class SearchEnv:
    home: Path | None = None
    data_home: Path | None = None


@dataclass(frozen=True)
class CardCounts:
    new: int
    learn: int
    review: int

    @property
    def total_due(self) -> int:
        return self.learn + self.review
