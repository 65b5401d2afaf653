# app/domain/priority.py
from functools import total_ordering
from typing import List

from app.domain.errors import InvalidPriorityError

PRIORITY_DESCRIPTIONS = {
    1: "Lowest priority - Can be done when time permits",
    2: "Low priority - Should be addressed eventually",
    3: "Below normal priority - Address after higher priority items",
    4: "Normal priority - Standard work item",
    5: "Medium priority - Should be done in reasonable timeframe",
    6: "Above normal priority - Should be prioritized",
    7: "High priority - Needs attention soon",
    8: "Very high priority - Important and time-sensitive",
    9: "Critical priority - Urgent, needs immediate attention",
    10: "Highest priority - Drop everything else",
}


@total_ordering
class PriorityBucket:
    """Task priority on a 1-10 scale, grouped into Low/Medium/High/Critical"""

    MIN_LEVEL = 1
    MAX_LEVEL = 10

    def __init__(self, level: int):
        if not self.is_valid(level):
            raise InvalidPriorityError()
        self.level = level

    @classmethod
    def is_valid(cls, level) -> bool:
        # bool is an int subclass, reject it explicitly
        return (
            isinstance(level, int)
            and not isinstance(level, bool)
            and cls.MIN_LEVEL <= level <= cls.MAX_LEVEL
        )

    @classmethod
    def all_priorities(cls) -> List["PriorityBucket"]:
        return [cls(level) for level in range(cls.MIN_LEVEL, cls.MAX_LEVEL + 1)]

    @property
    def label(self) -> str:
        if self.level <= 3:
            return "Low"
        if self.level <= 6:
            return "Medium"
        if self.level <= 8:
            return "High"
        return "Critical"

    @property
    def color(self) -> str:
        if self.level <= 3:
            return "#6B7280"  # gray
        if self.level <= 6:
            return "#2563EB"  # blue
        if self.level <= 8:
            return "#EA580C"  # orange
        return "#DC2626"  # red

    @property
    def description(self) -> str:
        return PRIORITY_DESCRIPTIONS[self.level]

    def is_high(self) -> bool:
        return self.level >= 8

    def is_medium(self) -> bool:
        return 4 <= self.level <= 7

    def is_low(self) -> bool:
        return self.level <= 3

    def to_dict(self) -> dict:
        return {
            "level": self.level,
            "label": self.label,
            "color": self.color,
            "description": self.description,
        }

    def __eq__(self, other):
        if not isinstance(other, PriorityBucket):
            return NotImplemented
        return self.level == other.level

    def __lt__(self, other):
        if not isinstance(other, PriorityBucket):
            return NotImplemented
        return self.level < other.level

    def __hash__(self):
        return hash(self.level)

    def __repr__(self):
        return f"<PriorityBucket(level={self.level}, label='{self.label}')>"
