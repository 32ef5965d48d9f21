"""Validation of score inputs against a criterion's bounds."""

from __future__ import annotations

import re
from collections.abc import Mapping, Sequence
from dataclasses import dataclass

from .errors import ValidationFailedError
from .models import Criterion

# Optional sign and ASCII digits, surrounding whitespace allowed
_INTEGER_PATTERN = re.compile(r"\s*[+-]?[0-9]+\s*")

SUBMISSION_INVALID_MESSAGE = "Bitte gib für jedes Kriterium eine ganze Zahl zwischen 0 und der Maximalpunktzahl ein."


@dataclass(frozen=True)
class Ok:
    score: int


@dataclass(frozen=True)
class Invalid:
    reason: str


ScoreResult = Ok | Invalid


def validate(raw_input: str, criterion: Criterion) -> ScoreResult:
    """Parse ``raw_input`` as an integer within ``[0, criterion.max_score]``.

    Total: every input yields exactly one of Ok or Invalid.
    """
    if not isinstance(raw_input, str) or not _INTEGER_PATTERN.fullmatch(raw_input):
        return Invalid(f"'{raw_input}' is not a whole number")
    try:
        score = int(raw_input)
    except ValueError:
        # Exceeds the interpreter's integer string conversion limit
        return Invalid("number is too long")
    if score < 0 or score > criterion.max_score:
        return Invalid(f"{score} is outside 0..{criterion.max_score}")
    return Ok(score)


def validate_submission(drafts: Mapping[int, str | None], criteria: Sequence[Criterion]) -> dict[int, int]:
    """Validate one draft per criterion; all must pass.

    Returns:
        Mapping of criterion id to validated score

    Raises:
        ValidationFailedError: One aggregate error when any criterion fails
    """
    scores: dict[int, int] = {}
    invalid: list[str] = []
    for criterion in criteria:
        result = validate(drafts.get(criterion.id) or "", criterion)
        if isinstance(result, Ok):
            scores[criterion.id] = result.score
        else:
            invalid.append(criterion.name)

    if invalid:
        raise ValidationFailedError(f"{SUBMISSION_INVALID_MESSAGE} Ungültig: {', '.join(invalid)}")
    return scores
