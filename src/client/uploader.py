# src/client/uploader.py
"""
HTTP client for the upload -> transcribe flow, the programmatic counterpart of
the dashboard's drag-and-drop widget.

Progress values reported through ``on_progress`` are cosmetic stage markers,
not a transfer-progress signal.
"""
from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, Callable, Optional

import httpx

logger = logging.getLogger(__name__)

EXTENSION_MIME_TYPES = {
    "mp3": "audio/mpeg",
    "wav": "audio/wav",
    "aac": "audio/aac",
    "ogg": "audio/ogg",
    "webm": "audio/webm",
    "flac": "audio/flac",
    "m4a": "audio/m4a",
    "mp4": "audio/mp4",
}

ProgressCallback = Callable[[str, int], None]


class ClientError(Exception):
    pass


class FileRejectedError(ClientError):
    """Local pre-check failure; ``code`` is "file-invalid-type" or "file-too-large"."""

    def __init__(self, code: str, message: str):
        super().__init__(message)
        self.code = code


class ApiError(ClientError):
    def __init__(self, status_code: int, payload: dict[str, Any]):
        super().__init__(f"HTTP {status_code}: {payload.get('error', 'Unknown error')}")
        self.status_code = status_code
        self.payload = payload


def guess_audio_mime(filename: str) -> Optional[str]:
    extension = filename.rsplit(".", 1)[-1].lower() if "." in filename else ""
    return EXTENSION_MIME_TYPES.get(extension)


class TranscriberClient:
    def __init__(
        self,
        base_url: str,
        access_token: str,
        max_file_size: Optional[int] = None,
        http_client: Optional[httpx.Client] = None,
        timeout: Optional[float] = None,
    ):
        self.max_file_size = max_file_size
        self._http = http_client or httpx.Client(base_url=base_url, timeout=timeout)
        self._headers = {"Authorization": f"Bearer {access_token}"}

    def close(self) -> None:
        self._http.close()

    def __enter__(self) -> "TranscriberClient":
        return self

    def __exit__(self, *exc_info: object) -> None:
        self.close()

    def _request(self, method: str, url: str, **kwargs: Any) -> dict[str, Any]:
        response = self._http.request(method, url, headers=self._headers, **kwargs)
        try:
            payload = response.json()
        except ValueError:
            payload = {"error": response.text or response.reason_phrase}

        if response.is_error:
            raise ApiError(response.status_code, payload)
        return payload

    def fetch_profile(self) -> dict[str, Any]:
        return self._request("GET", "/auth/me")

    def precheck(self, path: Path) -> str:
        """
        Reject files the server would refuse, before sending any bytes.

        Returns:
            The MIME type to upload the file with
        """
        content_type = guess_audio_mime(path.name)
        if content_type is None:
            raise FileRejectedError("file-invalid-type", "Invalid file type. Please upload an audio file.")

        if self.max_file_size is None:
            self.max_file_size = int(self.fetch_profile()["maxFileSize"])

        size = path.stat().st_size
        if size > self.max_file_size:
            raise FileRejectedError(
                "file-too-large",
                f"File is too large. Maximum size is {self.max_file_size} bytes.",
            )
        return content_type

    def upload(self, path: Path, content_type: str, title: Optional[str] = None) -> dict[str, Any]:
        data = {"title": title} if title else {}
        with path.open("rb") as fh:
            payload = self._request(
                "POST",
                "/upload",
                files={"file": (path.name, fh, content_type)},
                data=data,
            )
        return payload["transcription"]

    def transcribe(
        self,
        transcription_id: str,
        path: Path,
        content_type: str,
        language: str = "auto",
        prompt: Optional[str] = None,
    ) -> dict[str, Any]:
        data = {"transcriptionId": transcription_id, "language": language}
        if prompt:
            data["prompt"] = prompt
        with path.open("rb") as fh:
            return self._request(
                "POST",
                "/transcribe",
                files={"file": (path.name, fh, content_type)},
                data=data,
            )

    def list_transcriptions(self, page: int = 1, limit: int = 10, status: Optional[str] = None) -> dict[str, Any]:
        params: dict[str, Any] = {"page": page, "limit": limit}
        if status:
            params["status"] = status
        return self._request("GET", "/upload", params=params)

    def upload_and_transcribe(
        self,
        path: Path,
        title: Optional[str] = None,
        language: str = "auto",
        prompt: Optional[str] = None,
        on_progress: Optional[ProgressCallback] = None,
    ) -> dict[str, Any]:
        """Pre-check, upload, then transcribe one file."""
        report = on_progress or (lambda stage, percent: None)

        report("checking", 0)
        content_type = self.precheck(path)

        try:
            report("uploading", 10)
            transcription = self.upload(path, content_type, title=title)
            report("uploaded", 50)

            logger.info("Uploaded %s as transcription %s", path.name, transcription["id"])

            report("transcribing", 60)
            result = self.transcribe(transcription["id"], path, content_type, language=language, prompt=prompt)
        except ClientError:
            report("failed", 0)
            raise
        report("completed", 100)

        return {"upload": transcription, **result}
