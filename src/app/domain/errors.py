from __future__ import annotations

from typing import Any


class TranscriberError(Exception):
    status_code: int = 500

    def payload(self) -> dict[str, Any]:
        return {"error": str(self)}


class ConfigurationError(TranscriberError):
    def __init__(self, errors: list[str]):
        super().__init__(f"Configuration errors: {', '.join(errors)}")
        self.errors = errors


class UnauthorizedError(TranscriberError):
    status_code = 401

    def __init__(self, message: str = "Unauthorized"):
        super().__init__(message)


class ProfileNotFoundError(TranscriberError):
    status_code = 404

    def __init__(self, user_id: str):
        super().__init__("User profile not found")
        self.user_id = user_id


class InvalidInputError(TranscriberError):
    status_code = 400


class InvalidFileTypeError(InvalidInputError):
    def __init__(self, content_type: str | None):
        super().__init__("Invalid file type. Please upload an audio file.")
        self.content_type = content_type


class FileTooLargeError(TranscriberError):
    status_code = 413

    def __init__(self, tier: str, max_size: int, current_size: int):
        super().__init__(f"File size exceeds limit for {tier} plan")
        self.tier = tier
        self.max_size = max_size
        self.current_size = current_size

    def payload(self) -> dict[str, Any]:
        return {
            "error": str(self),
            "maxSize": self.max_size,
            "currentSize": self.current_size,
        }


class JobNotFoundError(TranscriberError):
    status_code = 404

    def __init__(self, job_id: str):
        super().__init__(f"Transcription not found: {job_id}")
        self.job_id = job_id


class JobStateConflictError(TranscriberError):
    status_code = 409

    def __init__(self, job_id: str, status: str):
        super().__init__(f"Transcription {job_id} is {status} and cannot be processed")
        self.job_id = job_id
        self.status = status

    def payload(self) -> dict[str, Any]:
        return {"error": str(self), "status": self.status}


class InsufficientCreditsError(TranscriberError):
    status_code = 402

    def __init__(self, credits_needed: int, credits_remaining: int):
        super().__init__("Insufficient credits")
        self.credits_needed = credits_needed
        self.credits_remaining = credits_remaining

    def payload(self) -> dict[str, Any]:
        return {
            "error": str(self),
            "creditsNeeded": self.credits_needed,
            "creditsRemaining": self.credits_remaining,
        }


class UpstreamEngineError(TranscriberError):
    def __init__(self, reason: str):
        super().__init__("Transcription failed")
        self.reason = reason

    def payload(self) -> dict[str, Any]:
        return {"error": str(self), "details": self.reason}


class PersistenceError(TranscriberError):
    def __init__(self, operation: str, reason: str):
        super().__init__(f"Database error during {operation}: {reason}")
        self.operation = operation
        self.reason = reason

    def payload(self) -> dict[str, Any]:
        return {"error": "Database error", "details": str(self)}


class StorageError(TranscriberError):
    def payload(self) -> dict[str, Any]:
        return {"error": "Failed to upload file", "details": str(self)}
