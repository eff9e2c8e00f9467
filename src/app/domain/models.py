# src/app/domain/models.py
"""
Domain models for the upload -> transcription -> settlement workflow.
These are pure data structures with no infrastructure dependencies.
"""
from __future__ import annotations

import math
from dataclasses import dataclass, field
from datetime import datetime
from enum import Enum
from typing import Any, Optional


class SubscriptionTier(str, Enum):
    """Subscription level of a profile."""
    FREE = "free"
    PRO = "pro"
    ENTERPRISE = "enterprise"


class JobStatus(str, Enum):
    """Status enum for transcription jobs."""
    PENDING = "pending"
    PROCESSING = "processing"
    COMPLETED = "completed"
    FAILED = "failed"


class UsageAction(str, Enum):
    TRANSCRIPTION = "transcription"
    API_CALL = "api_call"


class SubscriptionStatus(str, Enum):
    ACTIVE = "active"
    CANCELED = "canceled"
    INCOMPLETE = "incomplete"
    PAST_DUE = "past_due"


@dataclass
class Profile:
    """One per authenticated user."""
    id: str
    email: str
    subscription_tier: SubscriptionTier = SubscriptionTier.FREE
    credits_remaining: int = 0
    full_name: Optional[str] = None
    avatar_url: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class TranscriptionJob:
    """
    A single uploaded audio file and its transcription lifecycle.

    ``error_message`` carries the failure reason; ``transcript_text`` only
    ever holds a real transcript.
    """
    id: str
    user_id: str
    title: str
    original_filename: str
    file_url: str
    file_size_bytes: int
    status: JobStatus

    duration_seconds: Optional[float] = None
    language: Optional[str] = None
    transcript_text: Optional[str] = None
    confidence_score: Optional[float] = None
    error_message: Optional[str] = None

    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None

    @property
    def is_complete(self) -> bool:
        """Check if job has reached a terminal state."""
        return self.status in (JobStatus.COMPLETED, JobStatus.FAILED)


@dataclass
class UsageLogEntry:
    """Append-only audit record of a billable action."""
    user_id: str
    action: UsageAction
    credits_used: int
    transcription_id: Optional[str] = None
    metadata: dict[str, Any] = field(default_factory=dict)
    id: Optional[str] = None
    created_at: Optional[datetime] = None


@dataclass
class Subscription:
    """Persisted billing subscription. Not touched by the transcription workflow."""
    id: str
    user_id: str
    status: SubscriptionStatus
    price_id: str
    current_period_start: datetime
    current_period_end: datetime
    stripe_subscription_id: Optional[str] = None
    stripe_customer_id: Optional[str] = None
    created_at: Optional[datetime] = None
    updated_at: Optional[datetime] = None


@dataclass
class EngineTranscript:
    """What the speech engine returns for one audio file."""
    text: str
    duration_seconds: Optional[float]
    language: Optional[str]


@dataclass
class TranscriptionOutcome:
    """Result of a settled transcription."""
    job_id: str
    text: str
    duration_seconds: Optional[float]
    language: Optional[str]
    credits_used: int
    credits_remaining: int


@dataclass
class Settlement:
    """What a settlement actually charged, and the balance it left."""
    credits_charged: int
    credits_remaining: int

    @property
    def charged(self) -> bool:
        return self.credits_charged > 0


@dataclass
class JobPage:
    """One page of an owner-scoped job listing."""
    items: list[TranscriptionJob]
    total: int
    page: int
    limit: int

    @property
    def pages(self) -> int:
        if self.limit <= 0:
            return 0
        return math.ceil(self.total / self.limit)
