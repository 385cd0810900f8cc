from datetime import datetime, timezone

import structlog
from fastapi import APIRouter, Depends, Request
from fastapi.concurrency import run_in_threadpool

from quizrush.dependencies import get_llm_client, get_trivia_store
from quizrush.middleware.rate_limit import ai_generation_limit
from quizrush.schemas import DailyTriviaRequest
from quizrush.services.llm import LLMClient
from quizrush.services.normalizer import MULTIPLE_CHOICE
from quizrush.services.prompts import DAILY_TRIVIA_COUNT
from quizrush.services.quiz_generator import QuestionCategory, generate_questions
from quizrush.services.trivia_store import TriviaStore, daily_key

logger = structlog.get_logger()

router = APIRouter(prefix="/daily-trivia", tags=["daily-trivia"])


def today() -> str:
    return datetime.now(timezone.utc).date().isoformat()


@router.post("/generate")
@ai_generation_limit()
async def generate_daily_trivia(
    request: Request,
    body: DailyTriviaRequest,
    llm: LLMClient = Depends(get_llm_client),
    store: TriviaStore = Depends(get_trivia_store),
):
    """Return today's trivia set, generating and storing it on first request"""
    date_str = today()
    key = daily_key(date_str)

    existing = await run_in_threadpool(store.get, key)
    if existing:
        return {"message": "Trivia already exists", "date": date_str, "questions": existing["questions"]}

    questions = await generate_questions(
        llm, body.topic, body.difficulty, [QuestionCategory(MULTIPLE_CHOICE, DAILY_TRIVIA_COUNT)]
    )
    entry = {
        "topic": body.topic,
        "difficulty": body.difficulty,
        "questions": [q.to_dict() for q in questions],
        "generatedAt": datetime.now(timezone.utc).isoformat(),
    }

    stored, current = await run_in_threadpool(store.set_if_absent, key, entry)
    if not stored:
        # Another request stored today's set first
        logger.info("daily_trivia_race_lost", date=date_str)
        return {"message": "Trivia already exists", "date": date_str, "questions": current["questions"]}

    logger.info("daily_trivia_generated", date=date_str, topic=body.topic, count=len(questions))
    return {"message": "Trivia generated and saved!", "date": date_str, "questions": entry["questions"]}
