"""Verb bank: the editable collection of verbs used for practice."""

import logging
from typing import Callable, Iterable, Optional

from conjugar.core.models import ConjugationClass, Person, Tense, VerbDefinition

logger = logging.getLogger(__name__)


class VerbBankError(ValueError):
    """Invalid verb bank edit (duplicate, unknown verb, bad form)."""
    pass


def _irregular(infinitive: str, meaning: str, tags: list[str], forms: dict[Tense, list[str]]) -> VerbDefinition:
    overrides = {
        (tense, person): row[person.value]
        for tense, row in forms.items()
        for person in Person
    }
    return VerbDefinition(
        infinitive=infinitive,
        conjugation_class=ConjugationClass.IRREGULAR,
        meaning=meaning,
        tags=tags,
        overrides=overrides,
    )


def default_verbs() -> list[VerbDefinition]:
    """Starter verbs used when no verb bank has been saved yet."""
    return [
        VerbDefinition("hablar", ConjugationClass.AR, meaning="to speak", tags=["regular", "basico"]),
        VerbDefinition("comer", ConjugationClass.ER, meaning="to eat", tags=["regular", "basico"]),
        VerbDefinition("vivir", ConjugationClass.IR, meaning="to live", tags=["regular", "basico"]),
        _irregular("ser", "to be", ["irregular", "basico"], {
            Tense.PRESENT: ["soy", "eres", "es", "somos", "sois", "son"],
            Tense.PRETERITE: ["fui", "fuiste", "fue", "fuimos", "fuisteis", "fueron"],
            Tense.IMPERFECT: ["era", "eras", "era", "éramos", "erais", "eran"],
            Tense.FUTURE: ["seré", "serás", "será", "seremos", "seréis", "serán"],
            Tense.CONDITIONAL: ["sería", "serías", "sería", "seríamos", "seríais", "serían"],
        }),
    ]


class VerbBank:
    """Owns the verb definitions and notifies a listener after each edit."""

    def __init__(
        self,
        verbs: Optional[Iterable[VerbDefinition]] = None,
        on_change: Optional[Callable[[], None]] = None,
    ):
        self._verbs: dict[str, VerbDefinition] = {}
        for verb in verbs or []:
            if verb.key in self._verbs:
                logger.warning("Duplicate verb %r in snapshot, keeping last", verb.infinitive)
            self._verbs[verb.key] = verb
        self.on_change = on_change

    def _changed(self):
        if self.on_change:
            self.on_change()

    def __len__(self) -> int:
        return len(self._verbs)

    def __contains__(self, infinitive: str) -> bool:
        return infinitive.strip().lower() in self._verbs

    def get(self, infinitive: str) -> Optional[VerbDefinition]:
        """Get a verb by infinitive (case-insensitive)."""
        return self._verbs.get(infinitive.strip().lower())

    def _require(self, infinitive: str) -> VerbDefinition:
        verb = self.get(infinitive)
        if verb is None:
            raise VerbBankError(f"Unknown verb: {infinitive}")
        return verb

    def list_all(self) -> list[VerbDefinition]:
        """All verbs sorted by infinitive."""
        return sorted(self._verbs.values(), key=lambda v: v.key)

    def filter_by_tag(self, tag: str) -> list[VerbDefinition]:
        """Verbs that carry a tag."""
        tag = tag.lower()
        return [v for v in self.list_all() if tag in (t.lower() for t in v.tags)]

    def all_tags(self) -> list[str]:
        """Distinct tags across the bank, sorted."""
        return sorted({t for v in self._verbs.values() for t in v.tags})

    def add(self, verb: VerbDefinition) -> None:
        """Add a new verb. Raises VerbBankError if it already exists."""
        if not verb.infinitive.strip():
            raise VerbBankError("Infinitive is required")
        if verb.key in self._verbs:
            raise VerbBankError(f"Verb already exists: {verb.infinitive}")
        self._verbs[verb.key] = verb
        self._changed()

    def update(self, infinitive: str, verb: VerbDefinition) -> None:
        """Replace an existing verb, possibly renaming it."""
        old = self._require(infinitive)
        if verb.key != old.key and verb.key in self._verbs:
            raise VerbBankError(f"Verb already exists: {verb.infinitive}")
        del self._verbs[old.key]
        self._verbs[verb.key] = verb
        self._changed()

    def remove(self, infinitive: str) -> VerbDefinition:
        """Remove a verb and return it."""
        verb = self._require(infinitive)
        del self._verbs[verb.key]
        self._changed()
        return verb

    def set_override(self, infinitive: str, tense: Tense, person: Person, form: str) -> None:
        """Set one override cell. An empty form clears the cell."""
        verb = self._require(infinitive)
        form = form.strip()
        if form:
            verb.overrides[(tense, person)] = form
        else:
            verb.overrides.pop((tense, person), None)
        self._changed()

    def clear_override(self, infinitive: str, tense: Tense, person: Person) -> None:
        """Remove one override cell."""
        self.set_override(infinitive, tense, person, "")

    def merge(self, verbs: Iterable[VerbDefinition]) -> int:
        """Add new verbs and replace existing ones. Returns count merged."""
        count = 0
        for verb in verbs:
            self._verbs[verb.key] = verb
            count += 1
        if count:
            self._changed()
        return count
