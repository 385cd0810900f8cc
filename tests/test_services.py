"""
Unit tests for quiz generation, OCR polling, document extraction, PDF export and the trivia store
"""
import asyncio
import io
import random
from unittest.mock import patch

import httpx
import pytest
from pypdf import PdfReader

from conftest import FakeLLM, make_docx
from quizrush.config import Settings
from quizrush.errors import OCRError, OCRTimeoutError, ParseError, ProviderError
from quizrush.services.documents import UnsupportedDocument, extract_text, extract_text_from_docx
from quizrush.services.identity import IdentityProvider
from quizrush.services.ocr import OCRClient, is_supported_image
from quizrush.services.pdf_export import export_filename, format_percent, render_results_pdf
from quizrush.services.puzzles import parse_word_list
from quizrush.services.quiz_generator import QuestionCategory, generate_questions
from quizrush.services.trivia_store import TriviaStore, daily_key


class TestQuizGenerator:
    def test_photosynthesis_scenario(self):
        """2 multiple-choice + 1 true/false question yields exactly 3 records"""
        llm = FakeLLM()
        categories = [QuestionCategory("mc", 2), QuestionCategory("tf", 1)]
        records = asyncio.run(generate_questions(llm, "Photosynthesis", "Easy", categories))

        assert len(records) == 3
        assert sorted(r.question_type for r in records) == ["mc", "mc", "tf"]
        for record in records:
            if record.question_type == "tf":
                assert record.options == ["True", "False"]
            else:
                assert record.options[0].startswith("A. Option ")
                assert record.options[1:] == ["B. Beta", "C. Gamma", "D. Delta"]
                assert record.answer == "B. Beta"
        assert len(llm.prompts) == 2
        assert all("Photosynthesis" in p and '"Easy"' in p for p in llm.prompts)

    def test_total_never_exceeds_requested(self):
        def generous(prompt):
            return '[{"question": "a", "answer": "true"}, {"question": "b", "answer": "false"},' \
                   ' {"question": "c", "answer": "true"}]'

        records = asyncio.run(
            generate_questions(FakeLLM(generous), "t", "Easy", [QuestionCategory("tf", 2)], rng=random.Random(3))
        )
        assert len(records) == 2

    def test_zero_count_categories_are_skipped(self):
        llm = FakeLLM()
        records = asyncio.run(
            generate_questions(llm, "t", "Easy", [QuestionCategory("mc", 0), QuestionCategory("tf", 2)])
        )
        assert len(records) == 2
        assert len(llm.prompts) == 1

    def test_nothing_requested(self):
        llm = FakeLLM()
        assert asyncio.run(generate_questions(llm, "t", "Easy", [])) == []
        assert llm.prompts == []

    def test_labels_flow_into_records(self):
        llm = FakeLLM()
        categories = [QuestionCategory("tf", 1, cognitive_level="Remember", topic_area="Chlorophyll")]
        records = asyncio.run(generate_questions(llm, "Photosynthesis", "Easy", categories))
        assert records[0].cognitive_level == "Remember"
        assert records[0].topic_area == "Chlorophyll"
        assert '"Remember"' in llm.prompts[0]
        assert '"Chlorophyll"' in llm.prompts[0]

    def test_any_category_parse_failure_fails_everything(self):
        def flaky(prompt):
            if "true/false" in prompt:
                return "not json at all"
            return '[{"question": "q", "options": ["a", "b"], "answer": "a"}]'

        with pytest.raises(ParseError):
            asyncio.run(
                generate_questions(FakeLLM(flaky), "t", "Easy", [QuestionCategory("mc", 1), QuestionCategory("tf", 1)])
            )


def _ocr_client(handler, max_attempts=3):
    return OCRClient(
        "https://ocr.test/",
        "secret",
        poll_interval=0,
        max_attempts=max_attempts,
        transport=httpx.MockTransport(handler),
    )


def _accepted():
    return httpx.Response(202, headers={"operation-location": "https://ocr.test/operations/1"})


class TestOCRClient:
    def test_succeeded_result_joins_lines(self):
        seen = []

        def handler(request):
            seen.append(request)
            if request.method == "POST":
                return _accepted()
            if len(seen) < 3:
                return httpx.Response(200, json={"status": "running"})
            return httpx.Response(200, json={
                "status": "succeeded",
                "analyzeResult": {"pages": [
                    {"lines": [{"content": "Hello"}, {"content": "World"}]},
                    {"lines": [{"content": "Page two"}]},
                ]},
            })

        text = asyncio.run(_ocr_client(handler).extract_text(b"img", "image/png"))
        assert text == "Hello\nWorld\nPage two"
        post = seen[0]
        assert str(post.url) == "https://ocr.test/formrecognizer/documentModels/prebuilt-read:analyze?api-version=2023-07-31"
        assert post.headers["Ocp-Apim-Subscription-Key"] == "secret"
        assert post.headers["Content-Type"] == "image/png"

    def test_polling_budget_exhausted(self):
        polls = []

        def handler(request):
            if request.method == "POST":
                return _accepted()
            polls.append(request)
            return httpx.Response(200, json={"status": "running"})

        with pytest.raises(OCRTimeoutError) as exc_info:
            asyncio.run(_ocr_client(handler, max_attempts=4).extract_text(b"img", "image/png"))
        assert len(polls) == 4
        assert exc_info.value.status_code == 504

    def test_failed_status(self):
        def handler(request):
            if request.method == "POST":
                return _accepted()
            return httpx.Response(200, json={"status": "failed"})

        with pytest.raises(OCRError):
            asyncio.run(_ocr_client(handler).extract_text(b"img", "image/jpeg"))

    def test_missing_operation_location(self):
        with pytest.raises(OCRError):
            asyncio.run(_ocr_client(lambda request: httpx.Response(202)).extract_text(b"img", "image/png"))

    def test_non_json_poll_reply(self):
        def handler(request):
            if request.method == "POST":
                return _accepted()
            return httpx.Response(200, text="<html>gateway</html>")

        with pytest.raises(ProviderError) as exc_info:
            asyncio.run(_ocr_client(handler).extract_text(b"img", "image/png"))
        assert "gateway" in exc_info.value.details

    def test_http_error_is_provider_error(self):
        def handler(request):
            return httpx.Response(401, text="Access denied")

        with pytest.raises(ProviderError) as exc_info:
            asyncio.run(_ocr_client(handler).extract_text(b"img", "image/png"))
        assert exc_info.value.details == "Access denied"

    def test_unconfigured_client(self):
        with pytest.raises(ProviderError):
            asyncio.run(OCRClient(None, None).extract_text(b"img", "image/png"))

    @pytest.mark.parametrize("filename, expected", [
        ("scan.PNG", True), ("photo.jpeg", True), ("a.jpg", True), ("doc.pdf", False), ("noext", False), (None, False),
    ])
    def test_supported_images(self, filename, expected):
        assert is_supported_image(filename) is expected


class TestDocuments:
    def test_docx_paragraphs(self):
        data = make_docx("Chlorophyll absorbs light.", "Plants release oxygen.")
        assert extract_text_from_docx(data) == "Chlorophyll absorbs light.\nPlants release oxygen."

    def test_bad_docx(self):
        with pytest.raises(UnsupportedDocument):
            extract_text_from_docx(b"not a zip")

    def test_plain_text(self):
        assert extract_text(b"hello notes", "notes.txt", "text/plain") == "hello notes"

    def test_pdf_round_trip_through_export(self):
        pdf = render_results_pdf([{"name": "Alice", "quizTitle": "Cells", "score": 8, "total": 10, "percent": 80}])
        assert "Alice" in extract_text(pdf, "results.pdf", "application/pdf")

    def test_unsupported(self):
        with pytest.raises(UnsupportedDocument):
            extract_text(b"\x00\x01", "archive.bin", "application/octet-stream")


class TestPdfExport:
    def test_renders_pdf_with_rows(self):
        rows = [
            {"name": "Alice", "quizTitle": "Cells", "score": 8, "total": 10, "percent": 80,
             "submittedAt": "2025-11-01T10:00:00Z"},
            {"name": "Bob <script>", "quizTitle": "Cells & more", "score": 5, "total": 10, "percent": "50%",
             "submittedAt": None},
        ]
        pdf = render_results_pdf(rows, "Class 7B results")
        assert pdf.startswith(b"%PDF")
        text = "\n".join(page.extract_text() for page in PdfReader(io.BytesIO(pdf)).pages)
        assert "Class 7B results" in text
        assert "Bob <script>" in text

    def test_filename(self):
        assert export_filename("Class 7B / results") == "Class_7B_results.pdf"
        assert export_filename(None) == "quiz_results.pdf"

    def test_percent(self):
        assert format_percent(80) == "80%"
        assert format_percent("50%") == "50%"
        assert format_percent(None) == ""


class TestTriviaStore:
    def test_set_if_absent_keeps_first_value(self):
        store = TriviaStore(None)
        key = daily_key("2025-11-01")
        assert store.get(key) is None
        assert store.set_if_absent(key, {"questions": [1]}) == (True, {"questions": [1]})
        assert store.set_if_absent(key, {"questions": [2]}) == (False, {"questions": [1]})
        assert store.get(key) == {"questions": [1]}

    def test_set_and_delete(self):
        store = TriviaStore(None)
        assert store.set("k", "v")
        assert store.get("k") == "v"
        assert store.delete("k")
        assert not store.delete("k")

    def test_memory_entries_expire(self):
        now = [1000.0]
        store = TriviaStore(None, default_expire=60, clock=lambda: now[0])
        key = daily_key("2025-11-01")
        store.set_if_absent(key, {"questions": [1]})
        now[0] += 59
        assert store.get(key) == {"questions": [1]}
        now[0] += 1
        assert store.get(key) is None
        assert key not in store._memory_cache
        assert store.set_if_absent(key, {"questions": [2]}) == (True, {"questions": [2]})

    def test_unreachable_redis_falls_back_to_memory(self):
        store = TriviaStore("redis://127.0.0.1:1/0")
        assert store.redis_client is None
        assert store.set_if_absent("k", 1) == (True, 1)


class TestWordListParsing:
    def test_json_words_are_uppercased_and_deduplicated(self):
        assert parse_word_list('{"words": ["planet", "Star", "PLANET", " comet "]}') == ["PLANET", "STAR", "COMET"]

    def test_split_fallback(self):
        assert parse_word_list("orbit, moon; Orbit\nnebula") == ["ORBIT", "MOON", "NEBULA"]


class TestIdentityProvider:
    def test_unconfigured(self):
        with pytest.raises(ProviderError) as exc_info:
            IdentityProvider(None).create_user("a@b.c", "secret123")
        assert "FIREBASE_SERVICE_ACCOUNT" in exc_info.value.details

    def test_create_user_returns_uid(self):
        provider = IdentityProvider("{}")
        with patch.object(provider, "_get_app", return_value="app"), \
                patch("quizrush.services.identity.auth") as fake_auth:
            fake_auth.create_user.return_value.uid = "uid-1"
            assert provider.create_user("a@b.c", "secret123") == "uid-1"
        fake_auth.create_user.assert_called_once_with(email="a@b.c", password="secret123", app="app")

    def test_sdk_errors_become_provider_errors(self):
        provider = IdentityProvider("{}")
        with patch.object(provider, "_get_app", return_value="app"), \
                patch("quizrush.services.identity.auth") as fake_auth:
            fake_auth.update_user.side_effect = ValueError("Malformed email address")
            with pytest.raises(ProviderError) as exc_info:
                provider.update_email("uid-1", "not-an-email")
        assert exc_info.value.message == "Failed to update email"
        assert exc_info.value.details == "Malformed email address"


class TestSettings:
    def test_from_env(self, monkeypatch):
        monkeypatch.setenv("OPENAI_MODEL", "gpt-test")
        monkeypatch.setenv("CORS_ORIGINS", "https://a.test, https://b.test")
        monkeypatch.setenv("RATE_LIMIT_ENABLED", "false")
        monkeypatch.setenv("OCR_MAX_ATTEMPTS", "3")
        monkeypatch.delenv("REDIS_URL", raising=False)
        settings = Settings.from_env()
        assert settings.openai_model == "gpt-test"
        assert settings.cors_origins == ["https://a.test", "https://b.test"]
        assert settings.rate_limit_enabled is False
        assert settings.ocr_max_attempts == 3
        assert settings.redis_url is None
