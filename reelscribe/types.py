from typing import Optional

from pydantic import BaseModel, ConfigDict


class TranscriptionRequest(BaseModel):
    url: Optional[str] = None


class TranscriptionResult(BaseModel):
    model_config = ConfigDict(frozen=True)

    language_detected: str
    original_transcript: str
    english_translation: str


class TranscribeResponse(BaseModel):
    sourceUrl: str
    language_detected: str
    original_transcript: str
    english_translation: str


class ErrorResponse(BaseModel):
    error: str
    details: Optional[str] = None
