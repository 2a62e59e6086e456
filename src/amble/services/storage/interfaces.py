from __future__ import annotations

from typing import List, Optional, Protocol

from amble.services.storage.records import ConversionJob, StoredFile


class FileRepository(Protocol):
    """Persistence for uploaded file metadata."""

    def insert(self, record: StoredFile) -> StoredFile:
        ...

    def get(self, file_id: str) -> Optional[StoredFile]:
        ...

    def list(self) -> List[StoredFile]:
        """All records, newest upload first."""
        ...

    def search(self, query: str) -> List[StoredFile]:
        """Records matching `query` (see search_service.matches_query), newest first."""
        ...

    def update(self, file_id: str, **changes) -> Optional[StoredFile]:
        """Apply field changes; returns the updated record or None for an unknown id."""
        ...

    def delete(self, file_id: str) -> bool:
        ...


class ConversionRepository(Protocol):
    """Persistence for conversion jobs."""

    def insert(self, job: ConversionJob) -> ConversionJob:
        ...

    def get(self, job_id: str) -> Optional[ConversionJob]:
        ...

    def list(self) -> List[ConversionJob]:
        """All jobs, newest first."""
        ...

    def update(self, job_id: str, **changes) -> Optional[ConversionJob]:
        ...


class BlobStore(Protocol):
    """Opaque key -> bytes storage for original and converted files."""

    def put(self, key: str, data: bytes) -> None:
        ...

    def get(self, key: str) -> bytes:
        """Raises KeyError for an unknown key."""
        ...

    def delete(self, key: str) -> bool:
        ...
