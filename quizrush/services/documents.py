"""
Text extraction for uploaded study material
"""
import io
import zipfile
from typing import Optional

import docx
from docx.opc.exceptions import PackageNotFoundError
from pypdf import PdfReader
from pypdf.errors import PdfReadError

MAX_PDF_PAGES = 20


class UnsupportedDocument(ValueError):
    pass


def is_image(filename: Optional[str], content_type: Optional[str]) -> bool:
    return (content_type or "").startswith("image/") or (filename or "").lower().endswith((".jpg", ".jpeg", ".png"))


def is_docx(filename: Optional[str], content_type: Optional[str]) -> bool:
    return "wordprocessingml" in (content_type or "") or (filename or "").lower().endswith(".docx")


def is_pdf(filename: Optional[str], content_type: Optional[str]) -> bool:
    return "pdf" in (content_type or "") or (filename or "").lower().endswith(".pdf")


def extract_text_from_pdf(data: bytes) -> str:
    """Extract text from the first pages of a PDF"""
    try:
        reader = PdfReader(io.BytesIO(data))
        if reader.is_encrypted:
            reader.decrypt("")
        return "\n".join(page.extract_text() or "" for page in reader.pages[:MAX_PDF_PAGES])
    except PdfReadError as e:
        raise UnsupportedDocument(f"PDF parse error: {e}") from e


def extract_text_from_docx(data: bytes) -> str:
    """Read paragraph text from a Word document"""
    try:
        document = docx.Document(io.BytesIO(data))
    except (PackageNotFoundError, zipfile.BadZipFile, KeyError, ValueError) as e:
        raise UnsupportedDocument(f"DOCX parse error: {e}") from e
    return "\n".join(p.text for p in document.paragraphs if p.text.strip())


def extract_text(data: bytes, filename: Optional[str], content_type: Optional[str]) -> str:
    """Extract text from a non-image upload (PDF, DOCX or plain text)"""
    if is_pdf(filename, content_type):
        return extract_text_from_pdf(data)
    if is_docx(filename, content_type):
        return extract_text_from_docx(data)
    if (content_type or "").startswith("text/") or (filename or "").lower().endswith((".txt", ".md")):
        return data.decode("utf-8", errors="ignore")
    raise UnsupportedDocument(f"Unsupported file type: {content_type or filename}")
