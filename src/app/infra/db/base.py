# src/app/infra/db/base.py
"""
Abstract base classes for record storage.
Every job read/write is scoped by the owning user id.
"""
from __future__ import annotations

from abc import ABC, abstractmethod
from typing import Any, Optional

from src.app.domain.models import (
    JobPage,
    JobStatus,
    Profile,
    TranscriptionJob,
    UsageLogEntry,
)


class ProfileRepository(ABC):
    """
    Abstract interface for profile reads and credit mutation.

    Implementations:
    - SupabaseProfileRepository: `profiles` table + `deduct_credits` RPC
    """

    @abstractmethod
    def get_profile(self, user_id: str) -> Optional[Profile]:
        """
        Get a user's profile.

        Returns:
            The profile, or None if not found
        """
        pass

    @abstractmethod
    def deduct_credits(self, user_id: str, amount: int) -> Optional[int]:
        """
        Atomically decrement the balance if it covers ``amount``.

        The check and the decrement happen in one statement, so two concurrent
        settlements cannot overwrite each other's result.

        Args:
            user_id: The profile to charge
            amount: Credits to remove

        Returns:
            The new balance, or None if the balance was insufficient

        Raises:
            PersistenceError: If the store could not be reached
        """
        pass


class TranscriptionRepository(ABC):
    """
    Abstract interface for transcription job records.
    """

    @abstractmethod
    def create_job(
        self,
        user_id: str,
        title: str,
        original_filename: str,
        file_url: str,
        file_size_bytes: int,
    ) -> TranscriptionJob:
        """
        Insert a new job in PENDING status.

        Raises:
            PersistenceError: If the insert failed
        """
        pass

    @abstractmethod
    def transition_status(
        self,
        job_id: str,
        user_id: str,
        from_status: JobStatus,
        to_status: JobStatus,
        changes: Optional[dict[str, Any]] = None,
    ) -> Optional[TranscriptionJob]:
        """
        Conditionally move a job from one status to another.

        Only updates the row when (id, user_id, status=from_status) all match.

        Args:
            job_id: The job to update
            user_id: Must be the owner
            from_status: Required current status
            to_status: New status
            changes: Extra columns to set in the same update

        Returns:
            The updated job, or None if no row matched
        """
        pass

    @abstractmethod
    def get_job(self, job_id: str, user_id: str) -> Optional[TranscriptionJob]:
        """
        Get a job by id, only if owned by ``user_id``.
        """
        pass

    @abstractmethod
    def list_jobs(
        self,
        user_id: str,
        page: int = 1,
        limit: int = 10,
        status: Optional[JobStatus] = None,
    ) -> JobPage:
        """
        Get a page of a user's jobs, newest first, with the total count.
        """
        pass


class UsageLogRepository(ABC):
    """
    Abstract interface for the append-only usage log.
    """

    @abstractmethod
    def append(self, entry: UsageLogEntry) -> UsageLogEntry:
        """
        Write one usage entry. Entries are never updated or deleted.
        """
        pass
