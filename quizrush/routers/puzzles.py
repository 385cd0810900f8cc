from typing import Optional

from fastapi import APIRouter, Depends, File, Form, HTTPException, Request, UploadFile

from quizrush.dependencies import get_llm_client, get_ocr_client
from quizrush.middleware.rate_limit import ai_generation_limit
from quizrush.schemas import WordListRequest
from quizrush.services.documents import UnsupportedDocument, extract_text_from_docx, is_docx, is_image
from quizrush.services.llm import LLMClient
from quizrush.services.ocr import OCRClient
from quizrush.services.prompts import DEFAULT_CROSSWORD_THEME
from quizrush.services.puzzles import generate_crossword, generate_word_list, generate_wordsearch

router = APIRouter(tags=["puzzles"])

MAX_UPLOAD_BYTES = 10 * 1024 * 1024


@router.get("/generate-crossword-clues")
@ai_generation_limit()
async def crossword_clues(
    request: Request,
    theme: str = DEFAULT_CROSSWORD_THEME,
    llm: LLMClient = Depends(get_llm_client),
):
    """Generate a 10x10 crossword grid with clues"""
    return await generate_crossword(llm, theme)


@router.post("/wordsearch/generate")
@ai_generation_limit()
async def wordsearch_generate(
    request: Request,
    title: Optional[str] = Form(None),
    words: Optional[str] = Form(None),
    file: Optional[UploadFile] = File(None),
    llm: LLMClient = Depends(get_llm_client),
    ocr: OCRClient = Depends(get_ocr_client),
):
    """Generate an identification-style word search quiz from text and/or a file"""
    raw_text = (words or "").strip()

    if file is not None and file.filename:
        data = await file.read()
        if len(data) > MAX_UPLOAD_BYTES:
            raise HTTPException(status_code=400, detail="File too large (max 10 MB).")
        if is_image(file.filename, file.content_type):
            raw_text += "\n" + await ocr.extract_text(data, file.content_type)
        elif is_docx(file.filename, file.content_type):
            try:
                raw_text += "\n" + extract_text_from_docx(data)
            except UnsupportedDocument as e:
                raise HTTPException(status_code=400, detail=str(e))
        else:
            raise HTTPException(status_code=400, detail="Only image or .docx files are supported.")

    raw_text = raw_text.strip()
    if not raw_text:
        raise HTTPException(status_code=400, detail="No input provided (text or file).")

    return await generate_wordsearch(llm, title or "Word Search Quiz", raw_text)


@router.post("/wordsearch/generate-words")
@ai_generation_limit()
async def wordsearch_generate_words(
    request: Request,
    body: WordListRequest,
    llm: LLMClient = Depends(get_llm_client),
):
    """Generate a de-duplicated word list for a word-search puzzle"""
    if not body.description.strip():
        raise HTTPException(status_code=400, detail="Description is required.")

    words = await generate_word_list(llm, body.title, body.description, body.num_words)
    return {"words": words}
