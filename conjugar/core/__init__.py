"""Core business logic - UI independent."""
from .models import ConjugationClass, Person, PracticeAttempt, Student, Tense, VerbDefinition
from .conjugation import check_answer, normalize_answer, resolve

# Note: TrainerSession is imported directly from core.session where needed
# since it pulls in the storage slot names

__all__ = [
    "ConjugationClass",
    "Person",
    "PracticeAttempt",
    "Student",
    "Tense",
    "VerbDefinition",
    "check_answer",
    "normalize_answer",
    "resolve",
]
