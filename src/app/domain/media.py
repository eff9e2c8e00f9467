# src/app/domain/media.py
"""Pure helpers for audio uploads: type checks, titles and display formatting."""
from __future__ import annotations

import re
from datetime import datetime

AUDIO_MIME_TYPES = frozenset({
    "audio/mp3",
    "audio/mpeg",
    "audio/wav",
    "audio/wave",
    "audio/x-wav",
    "audio/aac",
    "audio/ogg",
    "audio/webm",
    "audio/flac",
    "audio/x-flac",
    "audio/m4a",
    "audio/mp4",
})

_SIZE_UNITS = ("Bytes", "KB", "MB", "GB")
_EXTENSION_RE = re.compile(r"\.[^/.]+$")
_SEPARATOR_RE = re.compile(r"[_-]")
_WORD_START_RE = re.compile(r"\b\w")


def is_audio_mime(content_type: str | None) -> bool:
    if not content_type:
        return False
    return content_type.strip().lower() in AUDIO_MIME_TYPES


def get_file_extension(filename: str) -> str:
    """Text after the last dot, or an empty string when there is none."""
    if "." not in filename:
        return ""
    return filename.rsplit(".", 1)[-1]


def generate_transcription_title(filename: str) -> str:
    """
    Derive a display title from an uploaded filename.

    "my_recording-01.mp3" -> "My Recording 01"
    """
    name = _EXTENSION_RE.sub("", filename)
    name = _SEPARATOR_RE.sub(" ", name)
    return _WORD_START_RE.sub(lambda m: m.group(0).upper(), name)


def format_file_size(size_bytes: int) -> str:
    if size_bytes < 0:
        raise ValueError("size_bytes cannot be negative")
    if size_bytes == 0:
        return "0 Bytes"

    value = float(size_bytes)
    unit = 0
    while value >= 1024 and unit < len(_SIZE_UNITS) - 1:
        value /= 1024
        unit += 1

    return f"{round(value, 2):g} {_SIZE_UNITS[unit]}"


def format_duration(seconds: float) -> str:
    """75 -> "1:15", 3661 -> "1:01:01"."""
    total = int(seconds)
    hours = total // 3600
    minutes = (total % 3600) // 60
    remaining = total % 60

    if hours > 0:
        return f"{hours}:{minutes:02d}:{remaining:02d}"
    return f"{minutes}:{remaining:02d}"


def format_date(value: str | datetime) -> str:
    """Format as e.g. "Jan 5, 2024, 03:07 PM"."""
    if isinstance(value, str):
        normalized = value.replace("Z", "+00:00") if value.endswith("Z") else value
        value = datetime.fromisoformat(normalized)
    return f"{value:%b} {value.day}, {value.year}, {value:%I:%M %p}"
