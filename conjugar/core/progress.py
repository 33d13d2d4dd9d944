"""Progress aggregation over the attempt log."""

from dataclasses import dataclass
from typing import Iterable

from conjugar.core.models import PracticeAttempt, Student, Tense


DEFAULT_HISTORY_WINDOW = 50


@dataclass(frozen=True)
class StudentTotals:
    """Overall counts for one student."""
    student: str
    total: int
    correct: int

    @property
    def accuracy(self) -> int:
        return accuracy_percent(self.correct, self.total)


@dataclass(frozen=True)
class TenseTally:
    """Correct/total counts for one tense."""
    correct: int = 0
    total: int = 0


def accuracy_percent(correct: int, total: int) -> int:
    """Percentage of correct answers, rounded half up. Zero when total is zero."""
    if total <= 0:
        return 0
    return (correct * 200 + total) // (total * 2)


def attempts_for(attempts: Iterable[PracticeAttempt], student: str) -> list[PracticeAttempt]:
    """Attempts by one student, in log order. Names match case-insensitively."""
    name = student.lower()
    return [a for a in attempts if a.student.lower() == name]


def student_totals(attempts: Iterable[PracticeAttempt], student: str) -> StudentTotals:
    """Count attempts and correct answers for a student."""
    mine = attempts_for(attempts, student)
    return StudentTotals(
        student=student,
        total=len(mine),
        correct=sum(1 for a in mine if a.correct),
    )


def tense_breakdown(
    attempts: Iterable[PracticeAttempt],
    student: str,
    window: int = DEFAULT_HISTORY_WINDOW,
) -> dict[Tense, TenseTally]:
    """Per-tense tallies over the student's most recent attempts.

    Tenses without attempts in the window are left out.
    """
    recent = attempts_for(attempts, student)[-window:] if window > 0 else []

    counts: dict[Tense, list[int]] = {}
    for attempt in recent:
        tally = counts.setdefault(attempt.tense, [0, 0])
        if attempt.correct:
            tally[0] += 1
        tally[1] += 1

    return {
        tense: TenseTally(correct=counts[tense][0], total=counts[tense][1])
        for tense in Tense
        if tense in counts
    }


def class_summary(
    attempts: Iterable[PracticeAttempt],
    students: Iterable[Student],
) -> list[StudentTotals]:
    """Totals for every student on the roster, in roster order."""
    attempts = list(attempts)
    return [student_totals(attempts, s.name) for s in students]
