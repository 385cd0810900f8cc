import json
from typing import List, Optional, Tuple

import structlog
from fastapi import APIRouter, Depends, HTTPException, Request
from pydantic import ValidationError
from starlette.datastructures import UploadFile

from quizrush.dependencies import get_llm_client, get_ocr_client
from quizrush.middleware.rate_limit import ai_generation_limit
from quizrush.schemas import CategoryBreakdown, CustomQuizRequest, QuizRequest
from quizrush.services.documents import UnsupportedDocument, extract_text, is_image
from quizrush.services.llm import LLMClient
from quizrush.services.normalizer import MULTIPLE_CHOICE, QUESTION_TYPES, TRUE_FALSE
from quizrush.services.ocr import OCRClient
from quizrush.services.quiz_generator import QuestionCategory, generate_questions

logger = structlog.get_logger()

router = APIRouter(tags=["quiz"])

JSON_FORM_FIELDS = ("cognitiveLevels", "topics")


async def _read_quiz_request(request: Request) -> Tuple[QuizRequest, Optional[UploadFile]]:
    """Accept either a multipart form (optionally with a file) or a JSON body"""
    content_type = request.headers.get("content-type", "")
    upload = None

    if content_type.startswith(("multipart/form-data", "application/x-www-form-urlencoded")):
        form = await request.form()
        data = {}
        for key, value in form.multi_items():
            if isinstance(value, UploadFile):
                if key == "file":
                    upload = value
                continue
            if value == "":
                continue
            if key == "quizType":
                data.setdefault(key, []).append(value)
            elif key in JSON_FORM_FIELDS:
                try:
                    data[key] = json.loads(value)
                except json.JSONDecodeError:
                    raise HTTPException(status_code=400, detail=f"{key} must be a JSON array")
            else:
                data[key] = value
    else:
        try:
            data = await request.json()
        except ValueError:
            raise HTTPException(status_code=400, detail="Request body must be JSON or multipart form data")
        if not isinstance(data, dict):
            raise HTTPException(status_code=400, detail="Request body must be a JSON object")
        data = {k: v for k, v in data.items() if v != ""}

    try:
        return QuizRequest.model_validate(data), upload
    except ValidationError as e:
        fields = ", ".join(".".join(str(p) for p in err["loc"]) for err in e.errors())
        raise HTTPException(status_code=400, detail=f"Invalid quiz request: {fields}")


def _quiz_types(body: QuizRequest) -> List[str]:
    if body.quiz_type is None:
        return list(QUESTION_TYPES)
    types = [body.quiz_type] if isinstance(body.quiz_type, str) else list(body.quiz_type)
    unknown = [t for t in types if t not in QUESTION_TYPES]
    if unknown:
        raise HTTPException(status_code=400, detail=f"Unknown quiz type: {', '.join(unknown)}")
    return types


def _split(entry: CategoryBreakdown, types: List[str], **labels) -> List[QuestionCategory]:
    counts = {MULTIPLE_CHOICE: entry.mc_questions, TRUE_FALSE: entry.tf_questions}
    return [QuestionCategory(t, counts[t], **labels) for t in types if counts[t] > 0]


def build_categories(body: QuizRequest) -> List[QuestionCategory]:
    types = _quiz_types(body)
    if body.topics:
        return [
            category
            for entry in body.topics
            for category in _split(entry, types, topic_area=entry.topic, cognitive_level=entry.cognitive_level)
        ]
    if body.cognitive_levels:
        return [
            category
            for entry in body.cognitive_levels
            for category in _split(entry, types, cognitive_level=entry.level)
        ]
    return _split(body, types)


async def _upload_text(upload: UploadFile, ocr: OCRClient) -> str:
    data = await upload.read()
    if not data:
        raise HTTPException(status_code=400, detail="Uploaded file is empty")
    if is_image(upload.filename, upload.content_type):
        return await ocr.extract_text(data, upload.content_type)
    try:
        return extract_text(data, upload.filename, upload.content_type)
    except UnsupportedDocument as e:
        raise HTTPException(status_code=400, detail=str(e))


@router.post("/generate-quiz")
@ai_generation_limit()
async def generate_quiz(
    request: Request,
    llm: LLMClient = Depends(get_llm_client),
    ocr: OCRClient = Depends(get_ocr_client),
):
    """Generate a mixed quiz from text and/or an uploaded file"""
    body, upload = await _read_quiz_request(request)

    if not (body.text and body.text.strip()) and upload is None:
        raise HTTPException(status_code=400, detail="Please provide input text or upload a file.")

    categories = build_categories(body)

    source = (body.text or "").strip()
    if upload is not None:
        extracted = (await _upload_text(upload, ocr)).strip()
        source = f"{source}\n{extracted}".strip()
    if not source:
        raise HTTPException(status_code=400, detail="Could not extract any text from the uploaded file")

    questions = await generate_questions(llm, source, body.difficulty, categories)
    logger.info("quiz_request_completed", created_by=body.created_by, questions=len(questions))
    return {"questions": [q.to_dict() for q in questions], "created_by": body.created_by}


@router.post("/generate-custom-quiz")
@ai_generation_limit()
async def generate_custom_quiz(
    request: Request,
    body: CustomQuizRequest,
    llm: LLMClient = Depends(get_llm_client),
):
    """Generator used by the customize-quiz page"""
    if not body.title or not body.difficulty:
        raise HTTPException(status_code=400, detail="Missing quiz title or difficulty.")

    categories = [
        QuestionCategory(MULTIPLE_CHOICE, body.mcq_count),
        QuestionCategory(TRUE_FALSE, body.tf_count),
    ]
    questions = await generate_questions(llm, body.title, body.difficulty, categories)
    return {
        "title": body.title,
        "difficulty": body.difficulty,
        "questions": [q.to_dict() for q in questions],
        "created_by": body.created_by,
    }
