"""Tense selection and random question drawing."""

import random
from dataclasses import dataclass
from typing import Iterable, Optional

from conjugar.core.models import Person, Tense, VerbDefinition


DEFAULT_TENSE = Tense.PRESENT


@dataclass(frozen=True)
class Question:
    """A verb/tense/person combination to conjugate."""
    verb: VerbDefinition
    tense: Tense
    person: Person

    @property
    def prompt(self) -> str:
        return f"{self.verb.infinitive} · {self.person.pronoun} · {self.tense.label}"


class TenseSelection:
    """Multi-select of tenses that is never empty."""

    def __init__(self, tenses: Optional[Iterable[Tense]] = None):
        self._tenses: list[Tense] = []
        for tense in tenses or []:
            if tense not in self._tenses:
                self._tenses.append(tense)
        if not self._tenses:
            self._tenses = [DEFAULT_TENSE]

    @property
    def tenses(self) -> list[Tense]:
        return list(self._tenses)

    def __contains__(self, tense: Tense) -> bool:
        return tense in self._tenses

    def __len__(self) -> int:
        return len(self._tenses)

    def toggle(self, tense: Tense) -> list[Tense]:
        """Add or remove a tense. Removing the last one restores the default."""
        if tense in self._tenses:
            self._tenses.remove(tense)
        else:
            self._tenses.append(tense)

        if not self._tenses:
            self._tenses = [DEFAULT_TENSE]
        return self.tenses

    def labels(self) -> str:
        return ", ".join(t.label for t in self._tenses)


def filter_by_tag(verbs: Iterable[VerbDefinition], tag: Optional[str]) -> list[VerbDefinition]:
    """Verbs carrying the tag, or all verbs when no tag is given."""
    if not tag:
        return list(verbs)
    tag = tag.lower()
    return [v for v in verbs if tag in (t.lower() for t in v.tags)]


def pick_question(
    verbs: Iterable[VerbDefinition],
    tenses: Iterable[Tense],
    tag: Optional[str] = None,
    rng: random.Random | None = None,
) -> Optional[Question]:
    """Draw a verb, tense and person uniformly at random.

    Returns None when no verb is eligible. An empty tense list falls back to
    the default tense.
    """
    rng = rng or random.Random()
    pool = filter_by_tag(verbs, tag)
    if not pool:
        return None

    tense_pool = list(tenses) or [DEFAULT_TENSE]
    return Question(
        verb=rng.choice(pool),
        tense=rng.choice(tense_pool),
        person=rng.choice(list(Person)),
    )
