"""
Rate limiting middleware using slowapi
"""
import os

from slowapi import Limiter
from slowapi.util import get_remote_address

AI_RATE_LIMIT = os.getenv("AI_RATE_LIMIT", "20/minute")
OCR_RATE_LIMIT = os.getenv("OCR_RATE_LIMIT", "10/minute")

# Create limiter instance
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["1000/hour", "100/minute"]
)


# Rate limit decorators for different endpoints
def ai_generation_limit():
    """Rate limit for AI generation endpoints"""
    return limiter.limit(AI_RATE_LIMIT)


def ocr_limit():
    """Rate limit for OCR endpoints"""
    return limiter.limit(OCR_RATE_LIMIT)


def admin_limit():
    """Rate limit for admin endpoints"""
    return limiter.limit("200/minute")
