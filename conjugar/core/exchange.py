"""CSV and JSON export, and bulk verb import."""

import csv
import io
import json
import logging
import re
from dataclasses import dataclass, field
from typing import Iterable, Optional, Sequence

from conjugar.core.models import ConjugationClass, PracticeAttempt, VerbDefinition
from conjugar.core.conjugation import infer_class, matches_class
from conjugar.core.progress import StudentTotals

logger = logging.getLogger(__name__)


RESULT_FIELDS = ["timestamp", "student", "verb", "tense", "person", "expected", "answer", "correct"]
SUMMARY_FIELDS = ["student", "total", "correct", "accuracy"]
IMPORT_FIELDS = ["infinitive", "meaning", "type", "tags"]

# One or more words of letters, e.g. "hablar" or "darse cuenta"
_INFINITIVE = re.compile(r"^[^\W\d_]+(?: [^\W\d_]+)*$")


@dataclass
class ImportResult:
    """Verbs parsed from an import, plus how many records were skipped."""
    verbs: list[VerbDefinition] = field(default_factory=list)
    skipped: int = 0


def to_csv(fields: Sequence[str], rows: Iterable[Sequence[object]]) -> str:
    """Render a header and rows with every value double-quoted.

    Rows are joined by a single newline with no trailing terminator.
    """
    buffer = io.StringIO()
    writer = csv.writer(buffer, quoting=csv.QUOTE_ALL, lineterminator="\n")
    writer.writerow(fields)
    for row in rows:
        writer.writerow(["" if value is None else value for value in row])
    text = buffer.getvalue()
    return text[:-1] if text.endswith("\n") else text


def attempts_to_csv(attempts: Iterable[PracticeAttempt]) -> str:
    """Per-student results export."""
    rows = (
        [
            a.timestamp.isoformat(timespec="seconds"),
            a.student,
            a.verb,
            a.tense.label,
            a.person.pronoun,
            a.expected,
            a.submitted,
            "yes" if a.correct else "no",
        ]
        for a in attempts
    )
    return to_csv(RESULT_FIELDS, rows)


def summary_to_csv(totals: Iterable[StudentTotals]) -> str:
    """Class-wide summary export."""
    rows = ([t.student, t.total, t.correct, f"{t.accuracy}%"] for t in totals)
    return to_csv(SUMMARY_FIELDS, rows)


def verbs_to_json(verbs: Iterable[VerbDefinition]) -> str:
    """Verb bank as an indented JSON array."""
    return json.dumps([v.to_dict() for v in verbs], ensure_ascii=False, indent=2)


def verb_problem(verb: VerbDefinition) -> Optional[str]:
    """Why an imported verb is unusable, or None if it is fine."""
    if not _INFINITIVE.match(verb.infinitive.strip()):
        return f"not an infinitive: {verb.infinitive!r}"
    if not matches_class(verb.infinitive, verb.conjugation_class):
        return f"{verb.infinitive} does not end in {verb.conjugation_class.label}"
    return None


def parse_verbs_json(text: str) -> ImportResult:
    """Parse a JSON array of verb records, skipping malformed entries."""
    result = ImportResult()
    try:
        data = json.loads(text)
    except json.JSONDecodeError as e:
        logger.warning("Verb import is not valid JSON: %s", e)
        return result

    if not isinstance(data, list):
        logger.warning("Verb import JSON is not an array")
        return result

    for index, record in enumerate(data):
        try:
            if not isinstance(record, dict):
                raise TypeError("record is not an object")
            verb = VerbDefinition.from_dict(record)
            problem = verb_problem(verb)
            if problem:
                raise ValueError(problem)
        except (KeyError, TypeError, ValueError, AttributeError) as e:
            logger.warning("Skipping verb record %d: %s", index, e)
            result.skipped += 1
            continue
        result.verbs.append(verb)
    return result


def parse_verbs_csv(text: str) -> ImportResult:
    """Parse CSV with columns infinitive,meaning,type,tags.

    The header row is optional. Tags are separated by semicolons. An empty
    type is inferred from the infinitive ending. Rows without a word-like
    infinitive, with an unknown type, or with a regular type the infinitive
    does not end in are skipped.
    """
    result = ImportResult()
    reader = csv.reader(io.StringIO(text.strip()))
    rows = [row for row in reader if any(cell.strip() for cell in row)]
    if not rows:
        return result

    header = [cell.strip().lower() for cell in rows[0]]
    if "infinitive" in header:
        rows = rows[1:]
        first_line = 2
    else:
        header = list(IMPORT_FIELDS)
        first_line = 1

    for line_no, row in enumerate(rows, start=first_line):
        record = dict(zip(header, (cell.strip() for cell in row)))
        infinitive = record.get("infinitive", "")
        if not infinitive:
            logger.warning("Skipping CSV row %d: missing infinitive", line_no)
            result.skipped += 1
            continue

        try:
            type_value = record.get("type", "")
            conjugation_class = (
                ConjugationClass.parse(type_value) if type_value else infer_class(infinitive)
            )
        except ValueError:
            logger.warning("Skipping CSV row %d: unknown type %r", line_no, record.get("type"))
            result.skipped += 1
            continue

        tags = [t.strip() for t in record.get("tags", "").split(";") if t.strip()]
        verb = VerbDefinition(
            infinitive=infinitive,
            conjugation_class=conjugation_class,
            meaning=record.get("meaning", ""),
            tags=tags,
        )
        problem = verb_problem(verb)
        if problem:
            logger.warning("Skipping CSV row %d: %s", line_no, problem)
            result.skipped += 1
            continue
        result.verbs.append(verb)
    return result


def parse_verb_import(text: str) -> ImportResult:
    """Parse a JSON array, or CSV whose first cell is an infinitive or header.

    JSON that is not an array is rejected rather than read as CSV.
    """
    stripped = text.lstrip()
    if stripped.startswith(("[", "{")):
        return parse_verbs_json(text)
    return parse_verbs_csv(text)
