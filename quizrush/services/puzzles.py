"""
Crossword and word-search generation
"""
from __future__ import annotations

import re
from typing import Any, List

import structlog

from quizrush.errors import ParseError, ProviderError
from quizrush.services.llm import LLMClient, unwrap_json_object, unwrap_response
from quizrush.services.monitoring import AI_GENERATION_REQUESTS
from quizrush.services.prompts import (
    CROSSWORD_SIZE,
    DEFAULT_CROSSWORD_THEME,
    build_crossword_prompt,
    build_word_list_prompt,
    build_wordsearch_prompt,
)

logger = structlog.get_logger()

WORD_SPLIT_RE = re.compile(r"[,;\n]+")


class NotEnoughWords(ProviderError):
    message = "AI did not return enough words."


def blank_grid(size: int = CROSSWORD_SIZE) -> List[List[str]]:
    return [["" for _ in range(size)] for _ in range(size)]


def _valid_grid(grid: Any, size: int = CROSSWORD_SIZE) -> bool:
    return (
        isinstance(grid, list)
        and len(grid) == size
        and all(isinstance(row, list) and len(row) == size for row in grid)
    )


async def generate_crossword(llm: LLMClient, theme: str = DEFAULT_CROSSWORD_THEME) -> dict:
    raw = await llm.complete(build_crossword_prompt(theme), temperature=0.7)
    logger.debug("crossword_raw_reply", raw=raw[:1000])
    parsed = unwrap_json_object(raw)
    if not isinstance(parsed, dict):
        raise ParseError(raw, details="Expected a JSON object")

    grid = parsed.get("grid")
    if not _valid_grid(grid):
        logger.warning("crossword_grid_missing", replaced_with="blank")
        grid = blank_grid()
    clues = parsed.get("clues")
    if not isinstance(clues, list):
        clues = []

    AI_GENERATION_REQUESTS.labels(type="crossword", status="success").inc()
    return {**parsed, "grid": grid, "clues": clues}


async def generate_wordsearch(llm: LLMClient, title: str, text: str) -> dict:
    parsed = await llm.complete_json(build_wordsearch_prompt(title, text), temperature=0.6)
    if not isinstance(parsed, dict):
        raise ParseError(str(parsed), details="Expected a JSON object")
    questions = parsed.get("questions")
    AI_GENERATION_REQUESTS.labels(type="wordsearch", status="success").inc()
    return {
        "title": parsed.get("title") or title,
        "questions": questions if isinstance(questions, list) else [],
    }


def unique_words(words: List[Any]) -> List[str]:
    """Trim, uppercase and de-duplicate words keeping first occurrence order"""
    seen = set()
    result = []
    for word in words:
        text = str(word).strip().upper()
        if text and text not in seen:
            seen.add(text)
            result.append(text)
    return result


def parse_word_list(raw: str) -> List[str]:
    try:
        parsed = unwrap_response(raw)
    except ParseError:
        logger.warning("word_list_not_json", fallback="split")
        return unique_words(WORD_SPLIT_RE.split(raw or ""))
    if isinstance(parsed, dict):
        parsed = parsed.get("words") or []
    if not isinstance(parsed, list):
        return []
    return unique_words(parsed)


async def generate_word_list(llm: LLMClient, title: str, description: str, num_words: int) -> List[str]:
    raw = await llm.complete(build_word_list_prompt(title, description, num_words), temperature=0.4)
    words = parse_word_list(raw)
    if len(words) < num_words:
        AI_GENERATION_REQUESTS.labels(type="word_list", status="error").inc()
        raise NotEnoughWords(details={"requested": num_words, "words": words})
    AI_GENERATION_REQUESTS.labels(type="word_list", status="success").inc()
    return words[:num_words]
