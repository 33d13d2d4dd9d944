"""Practice session state and user commands."""

import logging
import random
from dataclasses import dataclass
from datetime import datetime
from typing import Any, Optional, Protocol

from conjugar.core.conjugation import check_answer, display_form, resolve
from conjugar.core.exchange import (
    ImportResult,
    attempts_to_csv,
    parse_verb_import,
    summary_to_csv,
    verbs_to_json,
)
from conjugar.core.models import PracticeAttempt, Student, Tense, VerbDefinition
from conjugar.core.progress import (
    DEFAULT_HISTORY_WINDOW,
    StudentTotals,
    TenseTally,
    attempts_for,
    class_summary,
    student_totals,
    tense_breakdown,
)
from conjugar.core.selection import Question, TenseSelection, pick_question
from conjugar.core.verb_bank import VerbBank, default_verbs
from conjugar.storage.database import ACTIVE_STUDENT, ATTEMPTS, STUDENTS, VERB_BANK

logger = logging.getLogger(__name__)


MIN_NAME_LENGTH = 2


class Store(Protocol):
    """Key-value persistence used by the session."""

    def load(self, key: str, fallback: Any = None) -> Any: ...

    def save(self, key: str, value: Any) -> None: ...


@dataclass(frozen=True)
class Feedback:
    """Result of checking one answer."""
    correct: bool
    message: str
    expected: str = ""
    attempt: Optional[PracticeAttempt] = None


def _load_records(store: Store, key: str, from_dict) -> list:
    """Load a list slot, dropping records that don't parse."""
    raw = store.load(key, [])
    if not isinstance(raw, list):
        logger.warning("Slot %r is not a list, starting empty", key)
        return []

    items = []
    for record in raw:
        try:
            items.append(from_dict(record))
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Dropping unreadable %s record: %s", key, e)
    return items


class TrainerSession:
    """Owns the verb bank, roster and attempt log.

    Each public method is one user action. State is saved through the store
    after every successful change.
    """

    def __init__(
        self,
        store: Store,
        history_window: int = DEFAULT_HISTORY_WINDOW,
        tag: Optional[str] = None,
        rng: Optional[random.Random] = None,
    ):
        self.store = store
        self.history_window = history_window
        self.tag = tag or None
        self.rng = rng or random.Random()

        self.verbs = VerbBank(self._load_verbs(), on_change=self._save_verbs)
        self.students: list[Student] = _load_records(store, STUDENTS, Student.from_dict)
        self.attempts: list[PracticeAttempt] = _load_records(store, ATTEMPTS, PracticeAttempt.from_dict)

        active = store.load(ACTIVE_STUDENT, None)
        self.active_student: Optional[str] = active if isinstance(active, str) and self.find_student(active) else None

        self.selection = TenseSelection()
        self.question: Optional[Question] = None

    # Persistence

    def _load_verbs(self) -> list[VerbDefinition]:
        if self.store.load(VERB_BANK, None) is None:
            verbs = default_verbs()
            self.store.save(VERB_BANK, [v.to_dict() for v in verbs])
            return verbs
        return _load_records(self.store, VERB_BANK, VerbDefinition.from_dict)

    def _save_verbs(self):
        self.store.save(VERB_BANK, [v.to_dict() for v in self.verbs.list_all()])

    def _save_students(self):
        self.store.save(STUDENTS, [s.to_dict() for s in self.students])

    def _save_attempts(self):
        self.store.save(ATTEMPTS, [a.to_dict() for a in self.attempts])

    def _save_active(self):
        self.store.save(ACTIVE_STUDENT, self.active_student)

    # Roster

    def find_student(self, name: str) -> Optional[Student]:
        """Roster entry by name (case-insensitive)."""
        key = name.strip().lower()
        for student in self.students:
            if student.name.lower() == key:
                return student
        return None

    def login(self, name: str) -> Optional[str]:
        """Log a student in. Returns an error message if the name is rejected."""
        name = " ".join(name.split())
        if len(name) < MIN_NAME_LENGTH:
            return f"Please enter your name (at least {MIN_NAME_LENGTH} characters)."

        student = self.find_student(name)
        if student is None:
            student = Student(name=name)
            self.students.append(student)
            self._save_students()
            logger.info("Added student %s", name)

        self.active_student = student.name
        self._save_active()
        return None

    def logout(self) -> None:
        self.active_student = None
        self.question = None
        self._save_active()

    def remove_student(self, name: str) -> bool:
        """Remove a student from the roster. Their attempts are kept."""
        student = self.find_student(name)
        if student is None:
            return False

        self.students.remove(student)
        self._save_students()
        if self.active_student and self.active_student.lower() == student.name.lower():
            self.logout()
        return True

    # Practice

    def toggle_tense(self, tense: Tense) -> list[Tense]:
        """Toggle a tense in the selection, keeping the current question valid."""
        tenses = self.selection.toggle(tense)
        if self.question and self.question.tense not in self.selection:
            self.question = Question(
                verb=self.question.verb,
                tense=self.rng.choice(tenses),
                person=self.question.person,
            )
        return tenses

    def set_tag(self, tag: Optional[str]) -> None:
        """Restrict questions to verbs with a tag (None for all verbs)."""
        self.tag = tag or None

    def next_question(self) -> Optional[Question]:
        """Draw a new question. None if no verb matches the tag filter."""
        self.question = pick_question(
            self.verbs.list_all(), self.selection.tenses, tag=self.tag, rng=self.rng
        )
        return self.question

    def current_question(self) -> Optional[Question]:
        """The current question, bound to the verb as it is now in the bank.

        Clears the question when its verb has been removed or renamed.
        """
        question = self.question
        if question is None:
            return None

        verb = self.verbs.get(question.verb.infinitive)
        if verb is None:
            self.question = None
        elif verb is not question.verb:
            self.question = Question(verb=verb, tense=question.tense, person=question.person)
        return self.question

    def expected_form(self) -> str:
        """Expected answer for the current question."""
        question = self.current_question()
        if question is None:
            return ""
        return resolve(question.verb, question.tense, question.person)

    def submit_answer(self, text: str) -> Feedback:
        """Check an answer for the current question and record the attempt."""
        if not self.active_student:
            return Feedback(correct=False, message="Please enter your name first.")
        if self.question is None:
            return Feedback(correct=False, message="No question yet. Press next to start.")

        question = self.current_question()
        if question is None:
            return Feedback(
                correct=False,
                message="That verb is no longer in the bank. Press next for a new question.",
            )

        expected = self.expected_form()
        correct = check_answer(text, expected)

        attempt = PracticeAttempt(
            timestamp=datetime.now(),
            student=self.active_student,
            verb=question.verb.infinitive,
            tense=question.tense,
            person=question.person,
            expected=expected,
            submitted=text.strip(),
            correct=correct,
        )
        self.attempts.append(attempt)
        self._save_attempts()

        context = f"{question.verb.infinitive} – {question.person.pronoun} – {question.tense.label}"
        if correct:
            message = f"Correct ({context})"
        else:
            message = f'Incorrect. Expected "{display_form(expected)}" ({question.tense.label})'

        return Feedback(correct=correct, message=message, expected=expected, attempt=attempt)

    def clear_attempts(self, student: Optional[str] = None) -> int:
        """Delete attempts for one student, or all. Returns count removed."""
        before = len(self.attempts)
        if student is None:
            self.attempts = []
        else:
            name = student.lower()
            self.attempts = [a for a in self.attempts if a.student.lower() != name]

        removed = before - len(self.attempts)
        if removed:
            self._save_attempts()
        return removed

    # Progress

    def totals(self, student: Optional[str] = None) -> StudentTotals:
        return student_totals(self.attempts, student or self.active_student or "")

    def breakdown(self, student: Optional[str] = None) -> dict[Tense, TenseTally]:
        return tense_breakdown(self.attempts, student or self.active_student or "", self.history_window)

    def class_totals(self) -> list[StudentTotals]:
        return class_summary(self.attempts, self.students)

    # Import / export

    def results_csv(self, student: Optional[str] = None) -> str:
        """CSV of attempts for a student (the active one by default)."""
        name = student or self.active_student or ""
        return attempts_to_csv(attempts_for(self.attempts, name))

    def summary_csv(self) -> str:
        return summary_to_csv(self.class_totals())

    def verbs_json(self) -> str:
        return verbs_to_json(self.verbs.list_all())

    def import_verbs(self, text: str) -> ImportResult:
        """Merge verbs from JSON or CSV text into the bank."""
        result = parse_verb_import(text)
        merged = self.verbs.merge(result.verbs)
        logger.info("Imported %d verbs, skipped %d", merged, result.skipped)
        return result
