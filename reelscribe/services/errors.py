"""Failure taxonomy shared by every pipeline stage.

Each stage raises exactly one kind. The HTTP layer only looks at ``kind``;
``cause`` and ``raw`` are for server-side logs.
"""
from __future__ import annotations

from typing import Optional


class PipelineError(Exception):
    kind: str = "pipeline_error"
    message: str = "Pipeline failed."

    def __init__(self, message: Optional[str] = None, *, cause: Optional[str] = None) -> None:
        super().__init__(message or self.message)
        self.cause = cause

    def log_fields(self) -> dict:
        fields = {"error_kind": self.kind, "error": str(self)}
        if self.cause:
            fields["cause"] = self.cause[-2000:]
        return fields


class DownloadFailed(PipelineError):
    kind = "download_failed"
    message = "Media could not be downloaded."


class TranscodeFailed(PipelineError):
    kind = "transcode_failed"
    message = "Audio could not be converted to WAV."


class InferenceFailed(PipelineError):
    kind = "inference_failed"
    message = "Failed to transcribe or translate audio with Gemini."


class MalformedAIResponse(PipelineError):
    kind = "malformed_ai_response"
    message = "Gemini returned a response that could not be parsed."

    def __init__(self, raw: str, message: Optional[str] = None, *, cause: Optional[str] = None) -> None:
        super().__init__(message, cause=cause)
        self.raw = raw

    def log_fields(self) -> dict:
        fields = super().log_fields()
        fields["raw_reply"] = self.raw[:2000]
        return fields
