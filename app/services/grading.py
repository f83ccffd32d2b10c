import json
import logging
import re
from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional, Sequence

from app.core.constants import (
    ExamTypeEnum,
    FULL_TEST_QUESTION_COUNT,
    LISTENING_READING_BAND_TABLE,
    UNANSWERED,
)

logger = logging.getLogger(__name__)

_DELIMITERS = re.compile(r"[,;]")


@dataclass(frozen=True)
class SkillResult:
    skill_id: int
    correct: int
    total: int


@dataclass(frozen=True)
class GradingSummary:
    correct: int
    total: int
    accuracy: float
    band: float
    skills: List[SkillResult]


def parse_correct_answers(stored: Optional[str]) -> List[str]:
    """Ordered answer key for one skill section.

    A value starting with ``[`` is a JSON array; anything else is split on
    commas and semicolons. Invalid JSON gives an empty key.
    """
    if stored is None:
        return []
    text = stored.strip()
    if not text:
        return []

    if text.startswith("["):
        try:
            parsed = json.loads(text)
        except ValueError:
            logger.warning("Correct answer starts with '[' but is not valid JSON; grading as empty")
            return []
        if not isinstance(parsed, list):
            return []
        keys = [str(item) for item in parsed if item is not None]
    else:
        keys = _DELIMITERS.split(text)
    # blank entries are not questions in either format
    return [key.strip() for key in keys if key.strip()]


def answers_match(user_answer: Optional[str], correct_answer: str) -> bool:
    if user_answer is None:
        return False
    given = user_answer.strip()
    if not given or given == UNANSWERED:
        return False
    return given.casefold() == correct_answer.strip().casefold()


def grade_skill(skill_id: int, correct_answers: Sequence[str], user_answers: Sequence[str]) -> SkillResult:
    correct = 0
    for i, expected in enumerate(correct_answers):
        given = user_answers[i] if i < len(user_answers) else UNANSWERED
        if answers_match(given, expected):
            correct += 1
    return SkillResult(skill_id=skill_id, correct=correct, total=len(correct_answers))


def accuracy(correct: int, total: int) -> float:
    if total == 0:
        return 0.0
    return 100.0 * correct / total


def band_from_correct(correct: int, total: int = FULL_TEST_QUESTION_COUNT) -> float:
    """Academic Listening/Reading conversion, scaled to a 40 question test."""
    if total <= 0:
        return 0.0
    if total != FULL_TEST_QUESTION_COUNT:
        scaled = Decimal(correct * FULL_TEST_QUESTION_COUNT) / Decimal(total)
        correct = int(scaled.quantize(Decimal(1), rounding=ROUND_HALF_UP))
    for low, high, band in LISTENING_READING_BAND_TABLE:
        if low <= correct <= high:
            return band
    return 0.0


def summarize(results: Iterable[SkillResult]) -> GradingSummary:
    results = list(results)
    correct = sum(r.correct for r in results)
    total = sum(r.total for r in results)
    return GradingSummary(
        correct=correct,
        total=total,
        accuracy=accuracy(correct, total),
        band=band_from_correct(correct, total),
        skills=results,
    )


class GradingEngine:
    """Lexical grading for Reading and Listening sections."""

    def grade(self, exam_type: ExamTypeEnum, sections, answer_groups) -> GradingSummary:
        """``sections`` are Reading or Listening rows; ``answer_groups`` are AnswerGroups."""
        if not ExamTypeEnum(exam_type).is_auto_graded:
            raise ValueError(f"{exam_type} answers are graded by the AI grader, not lexically")

        answers_by_skill = {}
        for group in answer_groups:
            answers_by_skill[group.skill_id] = group.answers

        results = []
        for section in sections:
            key = parse_correct_answers(section.correct_answer)
            results.append(grade_skill(section.id, key, answers_by_skill.get(section.id, [])))
        return summarize(results)


grading_engine = GradingEngine()
