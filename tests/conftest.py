"""
Shared fixtures: fake provider handles injected through dependency overrides
"""
import io
import json
import re

import docx
import pytest
from fastapi.testclient import TestClient

from quizrush.dependencies import get_identity_provider, get_llm_client, get_ocr_client, get_trivia_store
from quizrush.errors import ProviderError
from quizrush.main import app
from quizrush.middleware.rate_limit import limiter
from quizrush.services.llm import LLMClient
from quizrush.services.trivia_store import TriviaStore

limiter.enabled = False

COUNT_RE = re.compile(r"Generate (\d+)")


def fenced(payload) -> str:
    return "```json\n" + json.dumps(payload) + "\n```"


def make_docx(*paragraphs) -> bytes:
    document = docx.Document()
    for text in paragraphs:
        document.add_paragraph(text)
    buffer = io.BytesIO()
    document.save(buffer)
    return buffer.getvalue()


def quiz_responder(prompt: str) -> str:
    """Answer quiz prompts with the requested number of items"""
    match = COUNT_RE.search(prompt)
    count = int(match.group(1)) if match else 1
    if "true/false" in prompt:
        return fenced([
            {"question": f"Statement {i}", "answer": "true" if i % 2 == 0 else "False"}
            for i in range(count)
        ])
    if "multiple-choice" in prompt:
        return fenced([
            {
                "question": f"Question {i}?",
                "options": [f"A. Option {i}", "B. Beta", "C. Gamma", "D. Delta"],
                "answer": "b. beta",
            }
            for i in range(count)
        ])
    return "{}"


class FakeLLM(LLMClient):
    def __init__(self, responder=quiz_responder):
        super().__init__(api_key="test-key", model="fake-model")
        self.responder = responder
        self.prompts = []

    async def complete(self, prompt, **kwargs):
        self.prompts.append(prompt)
        reply = self.responder(prompt)
        if isinstance(reply, Exception):
            raise reply
        return reply


class FakeOCR:
    configured = True

    def __init__(self, text="Recognized text", error=None):
        self.text = text
        self.error = error
        self.calls = []

    async def extract_text(self, data, content_type):
        self.calls.append((data, content_type))
        if self.error:
            raise self.error
        return self.text


class FakeIdentity:
    def __init__(self, error=None):
        self.error = error
        self.calls = []

    def _record(self, *call):
        self.calls.append(call)
        if self.error:
            raise ProviderError("Identity request failed", details=self.error)

    def create_user(self, email, password):
        self._record("create_user", email)
        return "uid-123"

    def delete_user(self, uid):
        self._record("delete_user", uid)

    def update_email(self, uid, new_email):
        self._record("update_email", uid, new_email)


@pytest.fixture
def fake_llm():
    return FakeLLM()


@pytest.fixture
def fake_ocr():
    return FakeOCR()


@pytest.fixture
def fake_identity():
    return FakeIdentity()


@pytest.fixture
def trivia_store():
    return TriviaStore(None)


@pytest.fixture
def client(fake_llm, fake_ocr, fake_identity, trivia_store):
    app.dependency_overrides[get_llm_client] = lambda: fake_llm
    app.dependency_overrides[get_ocr_client] = lambda: fake_ocr
    app.dependency_overrides[get_identity_provider] = lambda: fake_identity
    app.dependency_overrides[get_trivia_store] = lambda: trivia_store
    yield TestClient(app)
    app.dependency_overrides.clear()
