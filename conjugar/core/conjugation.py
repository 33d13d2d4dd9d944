"""Conjugation resolution and answer checking."""

import re

from conjugar.core.models import ConjugationClass, Person, Tense, VerbDefinition


# Endings appended to the stem (infinitive minus -ar/-er/-ir)
STEM_SUFFIXES: dict[Tense, dict[ConjugationClass, tuple[str, ...]]] = {
    Tense.PRESENT: {
        ConjugationClass.AR: ("o", "as", "a", "amos", "áis", "an"),
        ConjugationClass.ER: ("o", "es", "e", "emos", "éis", "en"),
        ConjugationClass.IR: ("o", "es", "e", "imos", "ís", "en"),
    },
    Tense.PRETERITE: {
        ConjugationClass.AR: ("é", "aste", "ó", "amos", "asteis", "aron"),
        ConjugationClass.ER: ("í", "iste", "ió", "imos", "isteis", "ieron"),
        ConjugationClass.IR: ("í", "iste", "ió", "imos", "isteis", "ieron"),
    },
    Tense.IMPERFECT: {
        ConjugationClass.AR: ("aba", "abas", "aba", "ábamos", "abais", "aban"),
        ConjugationClass.ER: ("ía", "ías", "ía", "íamos", "íais", "ían"),
        ConjugationClass.IR: ("ía", "ías", "ía", "íamos", "íais", "ían"),
    },
}

# Endings appended to the whole infinitive, regardless of class
INFINITIVE_SUFFIXES: dict[Tense, tuple[str, ...]] = {
    Tense.FUTURE: ("é", "ás", "á", "emos", "éis", "án"),
    Tense.CONDITIONAL: ("ía", "ías", "ía", "íamos", "íais", "ían"),
}

NO_KNOWN_FORM = "(no known form)"

_WHITESPACE = re.compile(r"\s+")


def infer_class(infinitive: str) -> ConjugationClass:
    """Guess the conjugation class from the infinitive ending."""
    ending = infinitive.strip().lower()[-2:]
    for cls in (ConjugationClass.AR, ConjugationClass.ER, ConjugationClass.IR):
        if ending == cls.ending:
            return cls
    return ConjugationClass.IRREGULAR


def matches_class(infinitive: str, cls: ConjugationClass) -> bool:
    """True if a regular class agrees with the infinitive ending. Irregular always agrees."""
    if not cls.is_regular:
        return True
    infinitive = infinitive.strip()
    return len(infinitive) >= 2 and infinitive[-2:].lower() == cls.ending


def resolve(verb: VerbDefinition, tense: Tense, person: Person) -> str:
    """Return the conjugated form, or empty string if there is no known form.

    An override for the cell always wins, even on regular verbs. Irregular
    verbs never fall back to the suffix tables. Regular verbs whose infinitive
    does not carry their class ending resolve to empty rather than a garbled
    form.
    """
    form = verb.override(tense, person)
    if form:
        return form

    cls = verb.conjugation_class
    if not cls.is_regular:
        return ""

    if not matches_class(verb.infinitive, cls):
        return ""

    infinitive = verb.infinitive.strip()

    if tense in INFINITIVE_SUFFIXES:
        return infinitive + INFINITIVE_SUFFIXES[tense][person.value]

    stem = infinitive[:-2]
    return stem + STEM_SUFFIXES[tense][cls][person.value]


def conjugation_table(verb: VerbDefinition) -> dict[Tense, list[str]]:
    """Resolve every tense and person for a verb."""
    return {
        tense: [resolve(verb, tense, person) for person in Person]
        for tense in Tense
    }


def normalize_answer(text: str) -> str:
    """Trim, case-fold and collapse whitespace runs. Accents are kept."""
    return _WHITESPACE.sub(" ", text.strip()).casefold()


def check_answer(submitted: str, expected: str) -> bool:
    """Compare a submitted answer to the expected form.

    An empty expected form never matches, so an unresolvable question can
    not be answered correctly by submitting nothing.
    """
    if not expected:
        return False
    return normalize_answer(submitted) == normalize_answer(expected)


def display_form(form: str) -> str:
    """Form as shown to the learner."""
    return form if form else NO_KNOWN_FORM
