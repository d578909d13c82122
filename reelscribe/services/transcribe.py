from __future__ import annotations

import base64
import json
from pathlib import Path
from typing import Any, Dict, Optional

import httpx

from reelscribe.core.logging import bind_logger, get_logger
from reelscribe.services.errors import InferenceFailed, MalformedAIResponse
from reelscribe.types import TranscriptionResult


logger = get_logger(__name__)

RESULT_KEYS = ("language_detected", "original_transcript", "english_translation")
JSON_FENCE = "```json"
FENCE = "```"
AUDIO_MIME_TYPE = "audio/wav"

PROMPT = """
You are an expert audio analyst. Listen to the provided audio and complete three tasks.

1. Detect the spoken language and report it as an ISO 639-1 two-letter code.
   Pay close attention to closely related languages. Hindi and Urdu in particular
   sound alike: decide between them by vocabulary and phrasing (for example
   Persian/Arabic-derived words point to Urdu, Sanskrit-derived words point to
   Hindi), never by script alone.
2. Transcribe the audio verbatim in its original language.
3. Translate the transcript into English. If the audio is already in English,
   the translation must be identical to the transcript.

Respond with ONLY a single minified JSON object with exactly these keys:
{"language_detected":"<code>","original_transcript":"<text>","english_translation":"<text>"}
Do not wrap it in markdown, and do not add any commentary.
""".strip()


def strip_json_fence(text: str) -> str:
    """Remove a ```json ... ``` wrapper. Other fence styles are left alone."""
    cleaned = text.strip()
    if not cleaned.startswith(JSON_FENCE):
        return cleaned
    cleaned = cleaned[len(JSON_FENCE):].rstrip()
    if cleaned.endswith(FENCE):
        cleaned = cleaned[: -len(FENCE)]
    return cleaned.strip()


def parse_transcription_reply(raw: str) -> TranscriptionResult:
    cleaned = strip_json_fence(raw)
    try:
        payload = json.loads(cleaned)
    except json.JSONDecodeError as e:
        raise MalformedAIResponse(raw, cause=f"invalid JSON: {e}") from e

    if not isinstance(payload, dict):
        raise MalformedAIResponse(raw, cause=f"expected a JSON object, got {type(payload).__name__}")

    missing = [key for key in RESULT_KEYS if key not in payload]
    if missing:
        raise MalformedAIResponse(raw, cause=f"missing keys: {', '.join(missing)}")

    values = {key: "" if payload[key] is None else str(payload[key]) for key in RESULT_KEYS}
    return TranscriptionResult(**values)


def extract_reply_text(data: Dict[str, Any]) -> str:
    candidates = data.get("candidates") or []
    if not candidates:
        return ""
    parts = ((candidates[0].get("content") or {}).get("parts") or [])
    texts = [str(p.get("text") or "") for p in parts if isinstance(p, dict)]
    return "".join(texts).strip()


class TranscriptionClient:
    """Sends a WAV file to Gemini's generateContent endpoint and parses the reply."""

    def __init__(
        self,
        api_key: str,
        model: str = "gemini-1.5-flash",
        base_url: str = "https://generativelanguage.googleapis.com/v1beta",
        timeout_seconds: float = 120,
        http_client: Optional[httpx.AsyncClient] = None,
    ) -> None:
        self.api_key = api_key
        self.model = model
        self.base_url = base_url.strip().rstrip("/")
        self.timeout_seconds = timeout_seconds
        self._http_client = http_client

    @property
    def endpoint(self) -> str:
        model_path = self.model if self.model.startswith("models/") else f"models/{self.model}"
        return f"{self.base_url}/{model_path}:generateContent"

    def build_payload(self, audio_b64: str) -> Dict[str, Any]:
        return {
            "contents": [
                {
                    "role": "user",
                    "parts": [
                        {"text": PROMPT},
                        {"inline_data": {"mime_type": AUDIO_MIME_TYPE, "data": audio_b64}},
                    ],
                }
            ]
        }

    async def _post(self, payload: Dict[str, Any]) -> httpx.Response:
        params = {"key": self.api_key}
        if self._http_client is not None:
            return await self._http_client.post(self.endpoint, params=params, json=payload, timeout=self.timeout_seconds)
        async with httpx.AsyncClient(timeout=self.timeout_seconds) as client:
            return await client.post(self.endpoint, params=params, json=payload)

    async def transcribe(self, waveform_path: Path, job_id: str = "unknown") -> TranscriptionResult:
        log = bind_logger(logger, job_id, "transcribe")
        try:
            audio_b64 = base64.b64encode(Path(waveform_path).read_bytes()).decode("ascii")
        except OSError as e:
            raise InferenceFailed(cause=f"could not read {waveform_path}: {e}") from e

        log.info("calling gemini", extra={"model": self.model, "audio_b64_len": len(audio_b64)})
        try:
            response = await self._post(self.build_payload(audio_b64))
        except httpx.HTTPError as e:
            log.error("gemini request failed", extra={"error": repr(e)})
            raise InferenceFailed(cause=repr(e)) from e

        if response.status_code >= 400:
            body = response.text[:1000]
            log.error("gemini returned an error", extra={"status": response.status_code, "body": body})
            raise InferenceFailed(cause=f"Gemini failed ({response.status_code}): {body}")

        try:
            data = response.json()
        except ValueError as e:
            raise InferenceFailed(cause=f"Gemini returned a non-JSON envelope: {response.text[:500]}") from e

        raw = extract_reply_text(data) if isinstance(data, dict) else ""
        if not raw:
            feedback = data.get("promptFeedback") if isinstance(data, dict) else None
            raise InferenceFailed(cause=f"Gemini returned no text (feedback={feedback})")

        result = parse_transcription_reply(raw)
        log.info(
            "transcription complete",
            extra={"lang": result.language_detected, "text_len": len(result.original_transcript)},
        )
        return result
