from fastapi import APIRouter, Depends, File, HTTPException, Request, UploadFile

from quizrush.dependencies import get_ocr_client
from quizrush.middleware.rate_limit import ocr_limit
from quizrush.services.ocr import OCRClient, is_supported_image

router = APIRouter(tags=["ocr"])


@router.post("/extract-text")
@ocr_limit()
async def extract_text(
    request: Request,
    file: UploadFile = File(None),
    ocr: OCRClient = Depends(get_ocr_client),
):
    """Extract text from an uploaded image"""
    if file is None or not file.filename:
        raise HTTPException(status_code=400, detail="No file uploaded")
    if not is_supported_image(file.filename):
        raise HTTPException(status_code=400, detail="Only .jpg, .jpeg, or .png images are supported for OCR")

    data = await file.read()
    text = await ocr.extract_text(data, file.content_type)
    return {"text": text}
