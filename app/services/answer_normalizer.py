"""Normalization of client-submitted answers.

Clients send answers in whatever shape the question widget produced:
``{"1_q1": "A", "1_q2": ["B", "C"], "1_q3": '["D"]'}``. Everything here turns
those values into canonical lists of trimmed strings and never raises; a value
that cannot be converted becomes "no answer".
"""
import json
import logging
from dataclasses import dataclass, field
from typing import Any, Dict, Iterable, List, Mapping, Optional, Union

from app.core.constants import UNANSWERED

logger = logging.getLogger(__name__)


@dataclass(frozen=True)
class Scalar:
    value: str


@dataclass(frozen=True)
class Sequence:
    values: List[str] = field(default_factory=list)


@dataclass(frozen=True)
class Unparseable:
    reason: str = ""


AnswerValue = Union[Scalar, Sequence, Unparseable]


def _to_text(value: Any) -> str:
    if isinstance(value, str):
        return value
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, (int, float)):
        return str(value)
    if isinstance(value, (dict, list, tuple)):
        return json.dumps(value, separators=(",", ":"), ensure_ascii=False)
    raise TypeError(f"unsupported answer element {type(value).__name__}")


def _decode_json_string(raw: str) -> Any:
    """Return the decoded value when ``raw`` is a JSON array or quoted string."""
    stripped = raw.strip()
    if not stripped or stripped[0] not in '["':
        return raw
    try:
        return json.loads(stripped)
    except ValueError:
        return raw


def classify(raw: Any) -> AnswerValue:
    if raw is None:
        return Scalar("")
    if isinstance(raw, str):
        decoded = _decode_json_string(raw)
        if decoded is not raw:
            return classify(decoded)
        return Scalar(raw)
    if isinstance(raw, (bool, int, float)):
        return Scalar(_to_text(raw))
    if isinstance(raw, (list, tuple)):
        try:
            return Sequence([_to_text(item) for item in raw if item is not None])
        except TypeError as e:
            return Unparseable(str(e))
    if isinstance(raw, dict):
        try:
            return Scalar(_to_text(raw))
        except (TypeError, ValueError) as e:
            return Unparseable(str(e))
    return Unparseable(f"unsupported answer type {type(raw).__name__}")


def to_tokens(value: AnswerValue) -> List[str]:
    if isinstance(value, Scalar):
        text = value.value.strip()
        return [text] if text else []
    if isinstance(value, Sequence):
        return [item.strip() for item in value.values if item and item.strip()]
    return []


def normalize_value(raw: Any) -> List[str]:
    return to_tokens(classify(raw))


def normalize_answers(raw_answers: Optional[Mapping[Any, Any]]) -> Dict[str, List[str]]:
    """Normalize ``{questionKey: rawValue}`` into ``{questionKey: [str, ...]}``.

    Keys are matched case-insensitively. The first spelling of a key keeps its
    position; a later equal key replaces the value.
    """
    normalized: Dict[str, List[str]] = {}
    spellings: Dict[str, str] = {}
    if not raw_answers or not isinstance(raw_answers, Mapping):
        return normalized

    for key, raw in raw_answers.items():
        key_text = str(key).strip()
        folded = key_text.casefold()
        target = spellings.setdefault(folded, key_text)
        value = classify(raw)
        if isinstance(value, Unparseable):
            logger.debug(f"Unparseable answer for {key_text}: {value.reason}")
        normalized[target] = to_tokens(value)
    return normalized


def flatten_answers(normalized: Mapping[str, List[str]]) -> List[str]:
    """Positional answer tokens for one skill, ``_`` for unanswered keys."""
    tokens: List[str] = []
    for values in normalized.values():
        if values:
            tokens.extend(values)
        else:
            tokens.append(UNANSWERED)
    return tokens


def answers_to_tokens(raw: Any) -> List[str]:
    """Positional tokens for a submitted group, given as a list or a key map."""
    if isinstance(raw, Mapping):
        return flatten_answers(normalize_answers(raw))
    if isinstance(raw, str):
        raw = _decode_json_string(raw)
        if isinstance(raw, str):
            return [raw.strip() or UNANSWERED]
    if isinstance(raw, (list, tuple)):
        tokens = []
        for item in raw:
            if isinstance(item, str):
                tokens.append(item.strip() or UNANSWERED)
                continue
            values = normalize_value(item)
            tokens.extend(values or [UNANSWERED])
        return tokens
    return []


# ===== Answer payload wire format =====

@dataclass
class AnswerGroup:
    skill_id: int
    answers: List[str] = field(default_factory=list)


def _lookup(item: Mapping[str, Any], name: str) -> Any:
    for key, value in item.items():
        if str(key).casefold() == name:
            return value
    return None


def serialize_answer_groups(groups: Iterable[AnswerGroup]) -> str:
    return json.dumps(
        [{"SkillId": g.skill_id, "Answers": list(g.answers)} for g in groups],
        ensure_ascii=False,
    )


def _stored_tokens(answers: Any) -> List[str]:
    # stored tokens are already normalized and come back unchanged
    if answers is None:
        return []
    if isinstance(answers, list) and all(isinstance(a, str) for a in answers):
        return list(answers)
    return answers_to_tokens(answers)


def parse_answer_groups(raw: Any) -> List[AnswerGroup]:
    """Decode a stored answer payload; malformed input yields an empty list."""
    if raw is None:
        return []
    try:
        data = raw
        # Payloads are sometimes double encoded by the client.
        while isinstance(data, str):
            text = data.strip()
            if not text:
                return []
            data = json.loads(text)
        if not isinstance(data, list):
            return []

        groups = []
        for item in data:
            if not isinstance(item, Mapping):
                continue
            skill_id = _lookup(item, "skillid")
            if skill_id is None:
                continue
            groups.append(AnswerGroup(skill_id=int(skill_id), answers=_stored_tokens(_lookup(item, "answers"))))
        return groups
    except (ValueError, TypeError) as e:
        logger.warning(f"Discarding malformed answer payload: {e}")
        return []
