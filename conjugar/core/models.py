"""Data models for the conjugation trainer."""

from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Optional


class Tense(Enum):
    """Indicative tenses that can be practised."""
    PRESENT = "presente"
    PRETERITE = "preterito"
    IMPERFECT = "imperfecto"
    FUTURE = "futuro"
    CONDITIONAL = "condicional"

    @property
    def label(self) -> str:
        return TENSE_LABELS[self]

    @classmethod
    def parse(cls, value: str) -> Optional["Tense"]:
        """Look up a tense by value, member name or label. None if unknown."""
        key = value.strip().lower()
        for tense in cls:
            if key in (tense.value, tense.name.lower(), tense.label.lower()):
                return tense
        return None


TENSE_LABELS = {
    Tense.PRESENT: "Presente",
    Tense.PRETERITE: "Pretérito",
    Tense.IMPERFECT: "Imperfecto",
    Tense.FUTURE: "Futuro",
    Tense.CONDITIONAL: "Condicional",
}


class Person(Enum):
    """Grammatical persons in canonical order. The value is the ordinal."""
    YO = 0
    TU = 1
    EL = 2
    NOSOTROS = 3
    VOSOTROS = 4
    ELLOS = 5

    @property
    def pronoun(self) -> str:
        return PRONOUNS[self.value]


PRONOUNS = ["yo", "tú", "él/ella", "nosotros", "vosotros", "ellos/ellas"]


class ConjugationClass(Enum):
    """Conjugation class of a verb."""
    AR = "ar"
    ER = "er"
    IR = "ir"
    IRREGULAR = "irregular"

    @property
    def is_regular(self) -> bool:
        return self is not ConjugationClass.IRREGULAR

    @property
    def ending(self) -> str:
        """Infinitive ending for regular classes, empty for irregular."""
        return self.value if self.is_regular else ""

    @property
    def label(self) -> str:
        return f"-{self.value}" if self.is_regular else self.value

    @classmethod
    def parse(cls, value: str) -> "ConjugationClass":
        """Parse '-ar', 'ar', 'AR', 'irregular' etc. Raises ValueError."""
        return cls(value.strip().lower().lstrip("-"))


@dataclass
class VerbDefinition:
    """A verb in the verb bank, with optional per-cell overrides."""
    infinitive: str
    conjugation_class: ConjugationClass
    meaning: str = ""
    tags: list[str] = field(default_factory=list)
    overrides: dict[tuple[Tense, Person], str] = field(default_factory=dict)

    @property
    def key(self) -> str:
        """Lookup key used by the verb bank."""
        return self.infinitive.strip().lower()

    def override(self, tense: Tense, person: Person) -> str:
        """Return the override for a cell, or empty string."""
        return self.overrides.get((tense, person), "")

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        overrides: dict[str, dict[str, str]] = {}
        for (tense, person), form in sorted(
            self.overrides.items(), key=lambda item: (item[0][0].value, item[0][1].value)
        ):
            overrides.setdefault(tense.value, {})[str(person.value)] = form

        return {
            "infinitive": self.infinitive,
            "meaning": self.meaning,
            "type": self.conjugation_class.value,
            "tags": self.tags,
            "overrides": overrides,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "VerbDefinition":
        """Create from dictionary.

        Raises KeyError, TypeError or ValueError for records that are not
        verb-shaped; callers that load untrusted data catch those.
        """
        infinitive = data["infinitive"]
        if not isinstance(infinitive, str) or not infinitive.strip():
            raise ValueError("infinitive must be a non-empty string")

        type_value = data.get("type") or data.get("conjugation_class")
        if type_value:
            conjugation_class = ConjugationClass.parse(type_value)
        else:
            from conjugar.core.conjugation import infer_class
            conjugation_class = infer_class(infinitive)

        tags = data.get("tags") or []
        if isinstance(tags, str):
            tags = [t.strip() for t in tags.split(";") if t.strip()]

        overrides: dict[tuple[Tense, Person], str] = {}
        for tense_key, cells in (data.get("overrides") or {}).items():
            tense = Tense.parse(tense_key)
            if tense is None:
                raise ValueError(f"unknown tense: {tense_key}")
            if isinstance(cells, list):
                cells = {str(i): form for i, form in enumerate(cells)}
            for person_key, form in cells.items():
                if form:
                    overrides[(tense, Person(int(person_key)))] = str(form)

        return cls(
            infinitive=infinitive.strip(),
            conjugation_class=conjugation_class,
            meaning=str(data.get("meaning") or ""),
            tags=[str(t) for t in tags],
            overrides=overrides,
        )


@dataclass
class Student:
    """A learner on the local roster."""
    name: str
    created_at: datetime = field(default_factory=datetime.now)

    def to_dict(self) -> dict:
        return {"name": self.name, "created_at": self.created_at.isoformat()}

    @classmethod
    def from_dict(cls, data: dict) -> "Student":
        name = data["name"]
        if not isinstance(name, str) or not name.strip():
            raise ValueError("name must be a non-empty string")

        created_at = data.get("created_at")
        if isinstance(created_at, str):
            created_at = datetime.fromisoformat(created_at)
        elif created_at is None:
            created_at = datetime.now()
        else:
            raise ValueError("created_at must be an ISO timestamp")

        return cls(name=name, created_at=created_at)


@dataclass(frozen=True)
class PracticeAttempt:
    """One submitted answer. Immutable once created."""
    timestamp: datetime
    student: str
    verb: str
    tense: Tense
    person: Person
    expected: str
    submitted: str
    correct: bool

    def to_dict(self) -> dict:
        """Convert to dictionary for JSON serialization."""
        return {
            "timestamp": self.timestamp.isoformat(),
            "student": self.student,
            "verb": self.verb,
            "tense": self.tense.value,
            "person": self.person.value,
            "expected": self.expected,
            "submitted": self.submitted,
            "correct": self.correct,
        }

    @classmethod
    def from_dict(cls, data: dict) -> "PracticeAttempt":
        """Create from dictionary.

        Raises ValueError when a text field is not a string.
        """
        fields = {
            "timestamp": data["timestamp"],
            "student": data["student"],
            "verb": data["verb"],
            "tense": data["tense"],
            "expected": data.get("expected", ""),
            "submitted": data.get("submitted", ""),
        }
        for name, value in fields.items():
            if not isinstance(value, str):
                raise ValueError(f"{name} must be a string")

        tense = Tense.parse(fields["tense"])
        if tense is None:
            raise ValueError(f"unknown tense: {fields['tense']}")

        return cls(
            timestamp=datetime.fromisoformat(fields["timestamp"]),
            student=fields["student"],
            verb=fields["verb"],
            tense=tense,
            person=Person(int(data["person"])),
            expected=fields["expected"],
            submitted=fields["submitted"],
            correct=bool(data["correct"]),
        )
