"""Unit tests for models and conjugation resolution."""

import pytest

# Models
from conjugar.core.models import (
    ConjugationClass,
    Person,
    PracticeAttempt,
    Student,
    Tense,
    VerbDefinition,
)

# Conjugation
from conjugar.core.conjugation import (
    check_answer,
    conjugation_table,
    display_form,
    infer_class,
    matches_class,
    normalize_answer,
    resolve,
)
from conjugar.core.verb_bank import default_verbs


# Expected forms for the three model verbs, persons yo..ellos
EXPECTED = {
    "hablar": {
        Tense.PRESENT: ["hablo", "hablas", "habla", "hablamos", "habláis", "hablan"],
        Tense.PRETERITE: ["hablé", "hablaste", "habló", "hablamos", "hablasteis", "hablaron"],
        Tense.IMPERFECT: ["hablaba", "hablabas", "hablaba", "hablábamos", "hablabais", "hablaban"],
        Tense.FUTURE: ["hablaré", "hablarás", "hablará", "hablaremos", "hablaréis", "hablarán"],
        Tense.CONDITIONAL: ["hablaría", "hablarías", "hablaría", "hablaríamos", "hablaríais", "hablarían"],
    },
    "comer": {
        Tense.PRESENT: ["como", "comes", "come", "comemos", "coméis", "comen"],
        Tense.PRETERITE: ["comí", "comiste", "comió", "comimos", "comisteis", "comieron"],
        Tense.IMPERFECT: ["comía", "comías", "comía", "comíamos", "comíais", "comían"],
        Tense.FUTURE: ["comeré", "comerás", "comerá", "comeremos", "comeréis", "comerán"],
        Tense.CONDITIONAL: ["comería", "comerías", "comería", "comeríamos", "comeríais", "comerían"],
    },
    "vivir": {
        Tense.PRESENT: ["vivo", "vives", "vive", "vivimos", "vivís", "viven"],
        Tense.PRETERITE: ["viví", "viviste", "vivió", "vivimos", "vivisteis", "vivieron"],
        Tense.IMPERFECT: ["vivía", "vivías", "vivía", "vivíamos", "vivíais", "vivían"],
        Tense.FUTURE: ["viviré", "vivirás", "vivirá", "viviremos", "viviréis", "vivirán"],
        Tense.CONDITIONAL: ["viviría", "vivirías", "viviría", "viviríamos", "viviríais", "vivirían"],
    },
}

CLASSES = {"hablar": ConjugationClass.AR, "comer": ConjugationClass.ER, "vivir": ConjugationClass.IR}


def _verb(infinitive, cls=None, **kwargs):
    return VerbDefinition(infinitive, cls or infer_class(infinitive), **kwargs)


class TestEnums:
    """Test tense, person and class enums."""

    def test_tense_values(self):
        assert [t.value for t in Tense] == [
            "presente", "preterito", "imperfecto", "futuro", "condicional"
        ]

    def test_tense_labels(self):
        assert Tense.PRETERITE.label == "Pretérito"
        assert Tense.CONDITIONAL.label == "Condicional"

    def test_tense_parse(self):
        assert Tense.parse("imperfecto") == Tense.IMPERFECT
        assert Tense.parse("FUTURE") == Tense.FUTURE
        assert Tense.parse("Pretérito") == Tense.PRETERITE
        assert Tense.parse("pluscuamperfecto") is None

    def test_person_ordinals(self):
        assert [p.value for p in Person] == [0, 1, 2, 3, 4, 5]
        assert Person.YO.pronoun == "yo"
        assert Person.ELLOS.pronoun == "ellos/ellas"

    def test_class_parse(self):
        assert ConjugationClass.parse("-ar") == ConjugationClass.AR
        assert ConjugationClass.parse("ER") == ConjugationClass.ER
        assert ConjugationClass.parse("irregular") == ConjugationClass.IRREGULAR
        with pytest.raises(ValueError):
            ConjugationClass.parse("-or")

    def test_class_label(self):
        assert ConjugationClass.IR.label == "-ir"
        assert ConjugationClass.IRREGULAR.label == "irregular"


class TestModels:
    """Test data model serialization."""

    def test_verb_round_trip_keeps_overrides(self):
        verb = _verb("ser", ConjugationClass.IRREGULAR, meaning="to be", tags=["irregular"],
                     overrides={(Tense.IMPERFECT, Person.NOSOTROS): "éramos"})
        data = verb.to_dict()
        assert data["type"] == "irregular"
        assert data["overrides"] == {"imperfecto": {"3": "éramos"}}

        restored = VerbDefinition.from_dict(data)
        assert restored == verb

    def test_verb_from_dict_infers_class(self):
        verb = VerbDefinition.from_dict({"infinitive": "bailar"})
        assert verb.conjugation_class == ConjugationClass.AR
        assert verb.tags == []

    def test_verb_from_dict_accepts_list_overrides_and_string_tags(self):
        verb = VerbDefinition.from_dict({
            "infinitive": "ir",
            "type": "irregular",
            "tags": "movimiento; basico",
            "overrides": {"presente": ["voy", "vas", "va", "vamos", "vais", "van"]},
        })
        assert verb.tags == ["movimiento", "basico"]
        assert verb.override(Tense.PRESENT, Person.NOSOTROS) == "vamos"

    def test_verb_from_dict_rejects_bad_records(self):
        with pytest.raises(KeyError):
            VerbDefinition.from_dict({"meaning": "no infinitive"})
        with pytest.raises(ValueError):
            VerbDefinition.from_dict({"infinitive": "  "})
        with pytest.raises(ValueError):
            VerbDefinition.from_dict({"infinitive": "ser", "overrides": {"aoristo": {"0": "x"}}})
        with pytest.raises(ValueError):
            VerbDefinition.from_dict({"infinitive": "ser", "overrides": {"presente": {"9": "x"}}})

    def test_attempt_round_trip(self):
        data = {
            "timestamp": "2024-03-01T10:00:00",
            "student": "Ana",
            "verb": "comer",
            "tense": "preterito",
            "person": 2,
            "expected": "comió",
            "submitted": "comio",
            "correct": False,
        }
        attempt = PracticeAttempt.from_dict(data)
        assert attempt.tense == Tense.PRETERITE
        assert attempt.person == Person.EL
        assert attempt.to_dict() == data

    def test_student_from_dict_rejects_bad_types(self):
        with pytest.raises(ValueError):
            Student.from_dict({"name": 5})
        with pytest.raises(ValueError):
            Student.from_dict({"name": "  "})
        with pytest.raises(ValueError):
            Student.from_dict({"name": "Ana", "created_at": 12345})

    @pytest.mark.parametrize("field", ["timestamp", "student", "verb", "tense", "expected", "submitted"])
    def test_attempt_from_dict_rejects_non_string_fields(self, field):
        data = {
            "timestamp": "2024-03-01T10:00:00", "student": "Ana", "verb": "comer",
            "tense": "presente", "person": 0, "expected": "como", "submitted": "como",
            "correct": True,
        }
        data[field] = None
        with pytest.raises(ValueError):
            PracticeAttempt.from_dict(data)

    def test_attempt_is_immutable(self):
        attempt = PracticeAttempt.from_dict({
            "timestamp": "2024-03-01T10:00:00", "student": "Ana", "verb": "comer",
            "tense": "presente", "person": 0, "correct": True,
        })
        with pytest.raises(AttributeError):
            attempt.correct = False


class TestResolve:
    """Test conjugation resolution."""

    @pytest.mark.parametrize("infinitive", sorted(EXPECTED))
    def test_regular_verbs_match_tables(self, infinitive):
        verb = _verb(infinitive, CLASSES[infinitive])
        for tense, forms in EXPECTED[infinitive].items():
            assert [resolve(verb, tense, p) for p in Person] == forms

    def test_hablar_present_yo(self):
        assert resolve(_verb("hablar"), Tense.PRESENT, Person.YO) == "hablo"

    def test_comer_preterite_el(self):
        assert resolve(_verb("comer"), Tense.PRETERITE, Person.EL) == "comió"

    def test_ser_imperfect_nosotros_from_overrides(self):
        ser = next(v for v in default_verbs() if v.infinitive == "ser")
        assert resolve(ser, Tense.IMPERFECT, Person.NOSOTROS) == "éramos"

    def test_override_wins_on_regular_verb(self):
        verb = _verb("hablar", overrides={(Tense.PRESENT, Person.YO): "hablo (override)"})
        assert resolve(verb, Tense.PRESENT, Person.YO) == "hablo (override)"
        # Other cells still follow the rules
        assert resolve(verb, Tense.PRESENT, Person.TU) == "hablas"

    def test_empty_override_is_ignored(self):
        verb = _verb("hablar", overrides={(Tense.PRESENT, Person.YO): ""})
        assert resolve(verb, Tense.PRESENT, Person.YO) == "hablo"

    def test_irregular_without_override_is_empty(self):
        verb = _verb("ser", ConjugationClass.IRREGULAR,
                     overrides={(Tense.PRESENT, Person.YO): "soy"})
        for tense in Tense:
            for person in Person:
                if (tense, person) != (Tense.PRESENT, Person.YO):
                    assert resolve(verb, tense, person) == ""

    def test_malformed_infinitive_is_empty(self):
        assert resolve(_verb("a", ConjugationClass.AR), Tense.PRESENT, Person.YO) == ""
        assert resolve(_verb("", ConjugationClass.AR), Tense.FUTURE, Person.YO) == ""
        # Claims -er but ends in -ar
        assert resolve(_verb("hablar", ConjugationClass.ER), Tense.PRESENT, Person.YO) == ""
        assert resolve(_verb("hablar", ConjugationClass.ER), Tense.FUTURE, Person.YO) == ""

    def test_infinitive_tenses_ignore_class_tables(self):
        assert resolve(_verb("vivir"), Tense.FUTURE, Person.VOSOTROS) == "viviréis"
        assert resolve(_verb("hablar"), Tense.CONDITIONAL, Person.NOSOTROS) == "hablaríamos"

    def test_uppercase_ending_is_accepted(self):
        assert resolve(_verb("Hablar", ConjugationClass.AR), Tense.PRESENT, Person.YO) == "Hablo"

    def test_conjugation_table(self):
        table = conjugation_table(_verb("comer"))
        assert list(table) == list(Tense)
        assert table[Tense.IMPERFECT][3] == "comíamos"

    def test_infer_class(self):
        assert infer_class("cantar") == ConjugationClass.AR
        assert infer_class("beber") == ConjugationClass.ER
        assert infer_class("escribir") == ConjugationClass.IR
        assert infer_class("oír") == ConjugationClass.IRREGULAR

    def test_matches_class(self):
        assert matches_class("hablar", ConjugationClass.AR)
        assert matches_class("HABLAR ", ConjugationClass.AR)
        assert not matches_class("hablar", ConjugationClass.ER)
        assert not matches_class("r", ConjugationClass.IR)
        assert matches_class("ser", ConjugationClass.IRREGULAR)


class TestAnswerChecking:
    """Test answer normalization and comparison."""

    def test_case_and_whitespace_insensitive(self):
        assert check_answer("HABLO ", "hablo")
        assert check_answer("  Hablo\t", "hablo")

    def test_accent_sensitive(self):
        assert not check_answer("hablo", "habló")
        assert not check_answer("comio", "comió")

    def test_internal_whitespace_collapsed(self):
        assert normalize_answer("  he   HABLADO \n") == "he hablado"

    @pytest.mark.parametrize("text", ["", "  ", "Éramos", " A  b\tC ", "ﬁ  ẞ", " x y "])
    def test_normalize_is_idempotent(self, text):
        once = normalize_answer(text)
        assert normalize_answer(once) == once

    def test_empty_expected_never_matches(self):
        assert not check_answer("", "")
        assert not check_answer("anything", "")

    def test_display_form(self):
        assert display_form("") == "(no known form)"
        assert display_form("soy") == "soy"
