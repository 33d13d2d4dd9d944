"""Tests for progress aggregation."""

from datetime import datetime, timedelta

from conjugar.core.models import PracticeAttempt, Person, Student, Tense
from conjugar.core.progress import (
    accuracy_percent,
    attempts_for,
    class_summary,
    student_totals,
    tense_breakdown,
)


START = datetime(2024, 3, 1, 9, 0, 0)


def make_attempts(student, results, tense=Tense.PRESENT):
    """Build attempts from a list of booleans."""
    return [
        PracticeAttempt(
            timestamp=START + timedelta(minutes=i),
            student=student,
            verb="hablar",
            tense=tense,
            person=Person.YO,
            expected="hablo",
            submitted="hablo" if ok else "habla",
            correct=ok,
        )
        for i, ok in enumerate(results)
    ]


class TestAccuracy:
    """Test percentage rounding."""

    def test_two_of_three_is_67(self):
        assert accuracy_percent(2, 3) == 67

    def test_one_of_three_is_33(self):
        assert accuracy_percent(1, 3) == 33

    def test_half_rounds_up(self):
        # 1/8 = 12.5%
        assert accuracy_percent(1, 8) == 13
        assert accuracy_percent(1, 40) == 3

    def test_zero_total_is_zero(self):
        assert accuracy_percent(0, 0) == 0

    def test_bounds(self):
        assert accuracy_percent(0, 5) == 0
        assert accuracy_percent(5, 5) == 100


class TestStudentTotals:
    """Test per-student counts."""

    def test_counts_only_that_student(self):
        attempts = make_attempts("Ana", [True, True, False]) + make_attempts("Luis", [False])
        totals = student_totals(attempts, "Ana")
        assert (totals.total, totals.correct, totals.accuracy) == (3, 2, 67)

    def test_name_match_is_case_insensitive(self):
        attempts = make_attempts("Ana", [True])
        assert len(attempts_for(attempts, "ana")) == 1

    def test_no_attempts(self):
        totals = student_totals([], "Ana")
        assert (totals.total, totals.correct, totals.accuracy) == (0, 0, 0)


class TestTenseBreakdown:
    """Test per-tense tallies over the recent window."""

    def test_only_tenses_with_attempts(self):
        attempts = (
            make_attempts("Ana", [True, False], Tense.PRESENT)
            + make_attempts("Ana", [True], Tense.FUTURE)
        )
        breakdown = tense_breakdown(attempts, "Ana")
        assert list(breakdown) == [Tense.PRESENT, Tense.FUTURE]
        assert breakdown[Tense.PRESENT].correct == 1
        assert breakdown[Tense.PRESENT].total == 2
        assert breakdown[Tense.FUTURE].total == 1

    def test_listed_in_tense_order(self):
        attempts = (
            make_attempts("Ana", [True], Tense.CONDITIONAL)
            + make_attempts("Ana", [True], Tense.PRETERITE)
        )
        assert list(tense_breakdown(attempts, "Ana")) == [Tense.PRETERITE, Tense.CONDITIONAL]

    def test_window_keeps_most_recent(self):
        attempts = (
            make_attempts("Ana", [False] * 5, Tense.PRESENT)
            + make_attempts("Ana", [True] * 3, Tense.IMPERFECT)
        )
        breakdown = tense_breakdown(attempts, "Ana", window=3)
        assert list(breakdown) == [Tense.IMPERFECT]
        assert breakdown[Tense.IMPERFECT].correct == 3

    def test_window_ignores_other_students(self):
        attempts = make_attempts("Ana", [True], Tense.FUTURE) + make_attempts("Luis", [False] * 10)
        breakdown = tense_breakdown(attempts, "Ana", window=1)
        assert breakdown[Tense.FUTURE].total == 1

    def test_default_window_is_fifty(self):
        attempts = make_attempts("Ana", [True] * 60)
        assert tense_breakdown(attempts, "Ana")[Tense.PRESENT].total == 50


class TestClassSummary:
    """Test class-wide totals."""

    def test_roster_order_and_zero_rows(self):
        students = [Student("Luis"), Student("Ana"), Student("Marta")]
        attempts = make_attempts("Ana", [True, True, False]) + make_attempts("Luis", [True])
        summary = class_summary(attempts, students)
        assert [t.student for t in summary] == ["Luis", "Ana", "Marta"]
        assert [t.accuracy for t in summary] == [100, 67, 0]
        assert summary[2].total == 0
