"""
Provider handles injected into route handlers
"""
from fastapi import Request

from quizrush.services.identity import IdentityProvider
from quizrush.services.llm import LLMClient
from quizrush.services.ocr import OCRClient
from quizrush.services.trivia_store import TriviaStore


def get_llm_client(request: Request) -> LLMClient:
    return request.app.state.llm_client


def get_ocr_client(request: Request) -> OCRClient:
    return request.app.state.ocr_client


def get_identity_provider(request: Request) -> IdentityProvider:
    return request.app.state.identity_provider


def get_trivia_store(request: Request) -> TriviaStore:
    return request.app.state.trivia_store
