from __future__ import annotations

from typing import Any

from fastapi.responses import JSONResponse
from pydantic import ValidationError

from reelscribe.core.context import AppContext
from reelscribe.core.logging import get_logger
from reelscribe.services.errors import DownloadFailed, PipelineError
from reelscribe.types import ErrorResponse, TranscribeResponse, TranscriptionRequest


logger = get_logger(__name__)

URL_REQUIRED = "Instagram Reel URL is required."
DOWNLOAD_FAILED = "Content could not be downloaded. The URL may be invalid, private, or the content is unavailable."
INTERNAL_ERROR = "An internal server error occurred."


def _error(status_code: int, error: str, details: str | None = None) -> JSONResponse:
    body = ErrorResponse(error=error, details=details).model_dump(exclude_none=True)
    return JSONResponse(status_code=status_code, content=body)


def _parse_request(payload: Any) -> TranscriptionRequest | None:
    if not isinstance(payload, dict):
        return None
    try:
        req = TranscriptionRequest.model_validate(payload)
    except ValidationError:
        return None
    if not req.url or not req.url.strip():
        return None
    return req


async def transcribe_url(payload: Any, context: AppContext) -> JSONResponse:
    req = _parse_request(payload)
    if req is None:
        return _error(400, URL_REQUIRED)

    url = req.url.strip()
    try:
        result = await context.new_pipeline().run(url)
    except DownloadFailed:
        return _error(400, DOWNLOAD_FAILED)
    except PipelineError as e:
        # Causes and raw model replies stay in the server log
        return _error(500, INTERNAL_ERROR, details=str(e))
    except Exception as e:
        logger.exception("An error occurred during the transcription process", extra={"component": "api", "url": url})
        return _error(500, INTERNAL_ERROR, details=str(e))

    response = TranscribeResponse(sourceUrl=url, **result.model_dump())
    return JSONResponse(status_code=200, content=response.model_dump())
