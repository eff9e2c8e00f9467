# src/app/infra/speech/openai_whisper.py
"""
OpenAI Whisper engine, called through the official `openai` SDK.
"""
from __future__ import annotations

import logging
import os
from typing import Optional

from openai import OpenAI, OpenAIError

from src.app.domain.errors import UpstreamEngineError
from src.app.domain.models import EngineTranscript
from src.app.infra.speech.base import SpeechEngine

logger = logging.getLogger(__name__)

DEFAULT_MODEL = "whisper-1"


class OpenAIWhisperEngine(SpeechEngine):
    def __init__(
        self,
        api_key: Optional[str] = None,
        model: str = DEFAULT_MODEL,
        client: Optional[OpenAI] = None,
    ):
        self.model = model
        self._client = client or OpenAI(api_key=api_key or os.getenv("OPENAI_API_KEY"))
        logger.info("OpenAIWhisperEngine initialized: model=%s", model)

    def transcribe(
        self,
        audio: bytes,
        filename: str,
        content_type: str,
        language: Optional[str] = None,
        prompt: Optional[str] = None,
    ) -> EngineTranscript:
        kwargs = {
            "model": self.model,
            "file": (filename, audio, content_type),
            "response_format": "verbose_json",
        }
        if language:
            kwargs["language"] = language
        if prompt:
            kwargs["prompt"] = prompt

        logger.info(
            "Transcribing with OpenAI: file=%s, size=%d bytes, language=%s",
            filename,
            len(audio),
            language or "auto",
        )

        try:
            response = self._client.audio.transcriptions.create(**kwargs)
        except OpenAIError as e:
            logger.error("OpenAI transcription failed: %s", e)
            raise UpstreamEngineError(str(e)) from e

        duration = getattr(response, "duration", None)
        return EngineTranscript(
            text=response.text,
            duration_seconds=float(duration) if duration is not None else None,
            language=getattr(response, "language", None),
        )
