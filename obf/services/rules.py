from __future__ import annotations

from dataclasses import dataclass
from datetime import datetime
from typing import Optional

from obf.utils import as_naive_utc


@dataclass(frozen=True)
class CriterionRule:
    """Completion conditions of a criterion: completion, grade threshold, deadline."""

    requires_completion: bool = True
    min_grade: Optional[float] = None
    completed_by: Optional[datetime] = None

    @classmethod
    def of(cls, criterion) -> "CriterionRule":
        return cls(
            requires_completion=bool(criterion.requires_completion),
            min_grade=criterion.min_grade,
            completed_by=criterion.completed_by,
        )


@dataclass(frozen=True)
class CompletionSnapshot:
    completed_at: Optional[datetime] = None
    grade: Optional[float] = None

    @property
    def is_complete(self) -> bool:
        return self.completed_at is not None


def rule_holds(rule: CriterionRule, completion: Optional[CompletionSnapshot]) -> bool:
    """Return True if the completion data satisfies every condition of the rule.

    A rule with no conditions at all still needs a completion row to exist.
    """
    if completion is None:
        return False

    if rule.requires_completion and not completion.is_complete:
        return False

    if rule.min_grade is not None:
        if completion.grade is None or completion.grade < rule.min_grade:
            return False

    if rule.completed_by is not None:
        if not completion.is_complete:
            return False
        if as_naive_utc(completion.completed_at) > as_naive_utc(rule.completed_by):
            return False

    return True
