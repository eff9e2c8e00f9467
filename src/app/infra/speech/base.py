# src/app/infra/speech/base.py
"""
Abstract interface for the external speech-to-text engine.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Optional

from src.app.domain.models import EngineTranscript


class SpeechEngine(ABC):
    """
    Implementations:
    - OpenAIWhisperEngine: OpenAI audio transcriptions API (whisper-1)
    """

    @abstractmethod
    def transcribe(
        self,
        audio: bytes,
        filename: str,
        content_type: str,
        language: Optional[str] = None,
        prompt: Optional[str] = None,
    ) -> EngineTranscript:
        """
        Transcribe one audio file.

        Args:
            audio: Raw audio bytes
            filename: Original filename (the engine infers the format from it)
            content_type: MIME type of the audio
            language: ISO-639-1 hint, or None to auto-detect
            prompt: Optional vocabulary/context prompt

        Returns:
            EngineTranscript with text, duration and detected language

        Raises:
            UpstreamEngineError: If the engine call failed
        """
        pass
