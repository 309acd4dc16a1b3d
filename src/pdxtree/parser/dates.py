"""
Game dates in YEAR.MONTH.DAY form.

Paradox history files key their entries by dates such as ``1444.11.11``.
Validation is deliberately loose: any day from 1 to 31 is accepted for
every month, so ``1444.2.30`` is a valid date here even though it does
not exist on a real calendar.
"""

from dataclasses import dataclass
from datetime import date
from typing import Optional, Tuple

MIN_YEAR = 1
MAX_YEAR = 9999


def _split_date(text: str) -> Optional[Tuple[int, int, int]]:
    """Split ``Y.M.D`` into three ints, or None if the shape is wrong."""
    parts = text.split('.')
    if len(parts) != 3:
        return None
    try:
        year, month, day = (int(part) for part in parts)
    except ValueError:
        return None
    return year, month, day


def is_date_text(text: str) -> bool:
    """Check if ``text`` is a valid YEAR.MONTH.DAY date literal."""
    split = _split_date(text)
    if split is None:
        return False
    year, month, day = split
    return MIN_YEAR <= year <= MAX_YEAR and 1 <= month <= 12 and 1 <= day <= 31


@dataclass(frozen=True, order=True)
class GameDate:
    """A calendar date as written in script files."""
    year: int
    month: int
    day: int

    @classmethod
    def parse(cls, text: str) -> "GameDate":
        """
        Parse a ``YEAR.MONTH.DAY`` literal.

        Raises:
            ValueError: If the text does not split into three integers.
        """
        split = _split_date(text.strip())
        if split is None:
            raise ValueError(f"Invalid date format: {text}")
        return cls(*split)

    def to_date(self) -> date:
        """Convert to ``datetime.date``. Raises ValueError for days that do not exist."""
        return date(self.year, self.month, self.day)

    def __str__(self):
        return f"{self.year}.{self.month}.{self.day}"
