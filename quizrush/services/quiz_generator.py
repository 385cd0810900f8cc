"""
Quiz generation: one LLM call per requested category, reshaped, shuffled and cut
"""
from __future__ import annotations

import asyncio
import random
from dataclasses import dataclass
from typing import Iterable, List, Optional

import structlog

from quizrush.services.llm import LLMClient
from quizrush.services.monitoring import AI_GENERATION_REQUESTS
from quizrush.services.normalizer import QuestionRecord, reshape_questions, shuffle_and_limit
from quizrush.services.prompts import build_quiz_prompt

logger = structlog.get_logger()

QUIZ_TEMPERATURE = 0.7


@dataclass(frozen=True)
class QuestionCategory:
    question_type: str
    count: int
    cognitive_level: Optional[str] = None
    topic_area: Optional[str] = None


def requested_total(categories: Iterable[QuestionCategory]) -> int:
    return sum(c.count for c in categories if c.count > 0)


async def generate_category(
    llm: LLMClient, topic: str, difficulty: str, category: QuestionCategory
) -> List[QuestionRecord]:
    prompt = build_quiz_prompt(
        category.question_type,
        topic,
        category.count,
        difficulty,
        cognitive_level=category.cognitive_level,
        topic_area=category.topic_area,
    )
    try:
        items = await llm.complete_json(prompt, temperature=QUIZ_TEMPERATURE)
    except Exception:
        AI_GENERATION_REQUESTS.labels(type=category.question_type, status="error").inc()
        raise
    AI_GENERATION_REQUESTS.labels(type=category.question_type, status="success").inc()
    return reshape_questions(
        items,
        category.question_type,
        cognitive_level=category.cognitive_level,
        topic_area=category.topic_area,
    )


async def generate_questions(
    llm: LLMClient,
    topic: str,
    difficulty: str,
    categories: Iterable[QuestionCategory],
    rng: Optional[random.Random] = None,
) -> List[QuestionRecord]:
    """Generate every category concurrently and return a shuffled selection.

    Any category failure fails the whole generation. The result never holds
    more records than the requested counts add up to.
    """
    active = [c for c in categories if c.count > 0]
    if not active:
        return []

    results = await asyncio.gather(
        *(generate_category(llm, topic, difficulty, category) for category in active)
    )
    combined = [record for batch in results for record in batch]
    selected = shuffle_and_limit(combined, requested_total(active), rng=rng)

    logger.info(
        "quiz_generated",
        categories=len(active),
        received=len(combined),
        returned=len(selected),
        difficulty=difficulty,
    )
    return selected
