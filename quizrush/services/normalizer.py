"""
Normalization of AI-generated quiz questions
"""
from __future__ import annotations

import random
import re
from typing import Any, List, Optional, Sequence

import structlog
from pydantic import BaseModel, ConfigDict

logger = structlog.get_logger()

TRUE_FALSE = "tf"
MULTIPLE_CHOICE = "mc"
QUESTION_TYPES = (MULTIPLE_CHOICE, TRUE_FALSE)

TRUE_FALSE_OPTIONS = ["True", "False"]

# One or more leading answer labels: "A.", "b)", "C:" with trailing whitespace
LABEL_PREFIX_RE = re.compile(r"^(?:\s*[A-Da-d][.):]\s*)+")


class QuestionRecord(BaseModel):
    model_config = ConfigDict(frozen=True)

    question_type: str
    question: str
    options: List[str]
    answer: str
    cognitive_level: Optional[str] = None
    topic_area: Optional[str] = None

    def to_dict(self) -> dict:
        return self.model_dump(exclude_none=True)


def clean_option(raw: Any) -> str:
    """Strip leading answer labels ("A.", "b)") and surrounding whitespace."""
    text = "" if raw is None else str(raw)
    return LABEL_PREFIX_RE.sub("", text).strip()


def _label(index: int, text: str) -> str:
    return f"{chr(ord('A') + index)}. {text}"


def _indexed_answer(raw: dict, raw_options: Sequence[Any]) -> Optional[str]:
    # Trivia items carry an integer "correctAnswer" index instead of answer text
    index = raw.get("correctAnswer")
    if raw.get("answer") is not None or isinstance(index, bool) or not isinstance(index, int):
        return None
    if 0 <= index < len(raw_options):
        return clean_option(raw_options[index])
    return None


def _reshape_multiple_choice(raw: dict) -> tuple[List[str], str]:
    raw_options = raw.get("options")
    if not isinstance(raw_options, list):
        raw_options = []

    seen = set()
    options: List[str] = []
    for raw_option in raw_options:
        text = clean_option(raw_option)
        key = text.casefold()
        if not text or key in seen:
            continue
        seen.add(key)
        options.append(_label(len(options), text))

    raw_answer = raw.get("answer")
    if raw_answer is None:
        raw_answer = raw.get("correctAnswer", "")
    wanted = clean_option(raw_answer).casefold()

    indexed = _indexed_answer(raw, raw_options)
    if indexed:
        wanted = indexed.casefold()

    for option in options:
        if clean_option(option).casefold() == wanted:
            return options, option

    fallback = str(raw_answer).strip()
    logger.info("answer_unmatched", answer=fallback, options=options)
    return options, fallback


def reshape_question(
    raw: dict,
    question_type: str,
    *,
    cognitive_level: Optional[str] = None,
    topic_area: Optional[str] = None,
) -> QuestionRecord:
    """Turn one provider item into a canonical QuestionRecord.

    Multiple-choice options are label-stripped, deduplicated case-insensitively
    and relabeled "A.", "B.", ... in order. The answer is matched back to a
    relabeled option; when nothing matches the provider's answer is kept as-is.
    True/false answers become "True" only for a case-insensitive "true".
    Malformed input never raises.
    """
    if not isinstance(raw, dict):
        raw = {}
    question = str(raw.get("question") or "").strip()

    if question_type == TRUE_FALSE:
        answer = str(raw.get("answer", "")).strip()
        options = list(TRUE_FALSE_OPTIONS)
        answer = "True" if answer.lower() == "true" else "False"
    elif question_type == MULTIPLE_CHOICE:
        options, answer = _reshape_multiple_choice(raw)
    else:
        raise ValueError(f"Unknown question type: {question_type}")

    return QuestionRecord(
        question_type=question_type,
        question=question,
        options=options,
        answer=answer,
        cognitive_level=cognitive_level or None,
        topic_area=topic_area or None,
    )


def reshape_questions(items: Any, question_type: str, **labels) -> List[QuestionRecord]:
    if isinstance(items, dict):
        # Some replies wrap the array: {"questions": [...]}
        items = items.get("questions", [items])
    if not isinstance(items, list):
        items = [items]
    return [reshape_question(item, question_type, **labels) for item in items]


def shuffle_and_limit(records: Sequence, limit: Optional[int] = 0, rng: Optional[random.Random] = None) -> list:
    """Return a uniformly shuffled copy of ``records`` cut to ``limit`` items.

    A limit of 0/None, or one larger than the input, keeps every item.
    """
    if limit is not None and limit < 0:
        raise ValueError("limit must be non-negative")
    shuffled = list(records)
    (rng or random).shuffle(shuffled)
    if limit:
        return shuffled[:limit]
    return shuffled
