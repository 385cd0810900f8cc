"""
Azure Document Intelligence (prebuilt-read) OCR client
"""
from __future__ import annotations

import asyncio
from typing import Optional

import httpx
import structlog

from quizrush.errors import OCRError, OCRTimeoutError, ProviderError
from quizrush.services.logging import log_performance
from quizrush.services.monitoring import OCR_REQUESTS

logger = structlog.get_logger()

ANALYZE_PATH = "/formrecognizer/documentModels/prebuilt-read:analyze"
API_VERSION = "2023-07-31"
IMAGE_EXTENSIONS = ("jpg", "jpeg", "png")


def is_supported_image(filename: Optional[str]) -> bool:
    if not filename or "." not in filename:
        return False
    return filename.rsplit(".", 1)[-1].lower() in IMAGE_EXTENSIONS


def lines_from_result(result: dict) -> str:
    lines = []
    for page in (result.get("analyzeResult") or {}).get("pages") or []:
        for line in page.get("lines") or []:
            lines.append(line.get("content", ""))
    return "\n".join(lines)


class OCRClient:
    def __init__(
        self,
        endpoint: Optional[str],
        key: Optional[str],
        poll_interval: float = 1.0,
        max_attempts: int = 10,
        transport: Optional[httpx.AsyncBaseTransport] = None,
    ):
        self.endpoint = (endpoint or "").rstrip("/")
        self.key = key
        self.poll_interval = poll_interval
        self.max_attempts = max_attempts
        self._transport = transport

    @property
    def configured(self) -> bool:
        return bool(self.endpoint and self.key)

    @property
    def analyze_url(self) -> str:
        return f"{self.endpoint}{ANALYZE_PATH}?api-version={API_VERSION}"

    async def _poll(self, client: httpx.AsyncClient, operation_location: str) -> dict:
        for attempt in range(1, self.max_attempts + 1):
            await asyncio.sleep(self.poll_interval)
            poll = await client.get(operation_location, headers={"Ocp-Apim-Subscription-Key": self.key})
            poll.raise_for_status()
            try:
                data = poll.json()
            except ValueError as e:
                OCR_REQUESTS.labels(status="error").inc()
                raise ProviderError("OCR processing failed", details=f"Unreadable poll response: {poll.text[:200]}") from e
            status = data.get("status")
            logger.debug("ocr_poll", attempt=attempt, status=status)
            if status == "succeeded":
                return data
            if status == "failed":
                OCR_REQUESTS.labels(status="failed").inc()
                raise OCRError("Azure OCR failed", details=data.get("error"))
        OCR_REQUESTS.labels(status="timeout").inc()
        raise OCRTimeoutError("Timed out waiting for Azure OCR result")

    @log_performance("ocr_extract_text")
    async def extract_text(self, data: bytes, content_type: str) -> str:
        """Submit an image and poll until the read result is ready"""
        if not self.configured:
            raise ProviderError("OCR provider is not configured", details="AZURE_OCR_ENDPOINT/AZURE_OCR_KEY not set")

        async with httpx.AsyncClient(timeout=30.0, transport=self._transport) as client:
            try:
                response = await client.post(
                    self.analyze_url,
                    content=data,
                    headers={
                        "Content-Type": content_type or "application/octet-stream",
                        "Ocp-Apim-Subscription-Key": self.key,
                    },
                )
                response.raise_for_status()
                operation_location = response.headers.get("operation-location")
                if not operation_location:
                    raise OCRError("Azure did not return operation-location")
                result = await self._poll(client, operation_location)
            except httpx.HTTPStatusError as e:
                OCR_REQUESTS.labels(status="error").inc()
                raise ProviderError("OCR processing failed", details=e.response.text) from e
            except httpx.HTTPError as e:
                OCR_REQUESTS.labels(status="error").inc()
                raise ProviderError("OCR processing failed", details=str(e)) from e

        OCR_REQUESTS.labels(status="success").inc()
        return lines_from_result(result)
