"""Domain entities for yearly emigration series."""

from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Optional


@dataclass(slots=True)
class SexBreakdownRecord:
    """Upstream row with emigrant counts split by sex for one year.

    Values arrive from manual CSV imports and are deliberately left untyped;
    data preparation decides what is usable.
    """

    year: Any
    male: Optional[Any] = None
    female: Optional[Any] = None


@dataclass(frozen=True, slots=True)
class YearlyObservation:
    """Total emigrants recorded for one calendar year."""

    year: int
    emigrants: float
