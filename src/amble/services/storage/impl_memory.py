"""In-memory providers, used by tests and ephemeral deployments."""
from __future__ import annotations

import threading
from dataclasses import replace
from typing import Dict, List, Optional

from amble.services.search_service import matches_query
from amble.services.storage.interfaces import BlobStore, ConversionRepository, FileRepository
from amble.services.storage.records import ConversionJob, StoredFile


def _apply_changes(record, changes):
    unknown = [key for key in changes if not hasattr(record, key)]
    if unknown:
        raise AttributeError(f"Unknown field(s) for {type(record).__name__}: {', '.join(unknown)}")
    return replace(record, **changes)


class InMemoryFileRepository(FileRepository):
    def __init__(self):
        self._records: Dict[str, StoredFile] = {}
        self._lock = threading.Lock()

    def insert(self, record: StoredFile) -> StoredFile:
        with self._lock:
            if record.id in self._records:
                raise ValueError(f"File {record.id} already exists")
            self._records[record.id] = replace(record)
        return record

    def get(self, file_id: str) -> Optional[StoredFile]:
        record = self._records.get(file_id)
        return replace(record) if record else None

    def list(self) -> List[StoredFile]:
        with self._lock:
            records = [replace(r) for r in self._records.values()]
        return sorted(records, key=lambda r: r.upload_date, reverse=True)

    def search(self, query: str) -> List[StoredFile]:
        return [r for r in self.list() if matches_query(r, query)]

    def update(self, file_id: str, **changes) -> Optional[StoredFile]:
        with self._lock:
            record = self._records.get(file_id)
            if record is None:
                return None
            updated = _apply_changes(record, changes)
            self._records[file_id] = updated
        return replace(updated)

    def delete(self, file_id: str) -> bool:
        with self._lock:
            return self._records.pop(file_id, None) is not None


class InMemoryConversionRepository(ConversionRepository):
    def __init__(self):
        self._jobs: Dict[str, ConversionJob] = {}
        self._lock = threading.Lock()

    def insert(self, job: ConversionJob) -> ConversionJob:
        with self._lock:
            if job.id in self._jobs:
                raise ValueError(f"Conversion {job.id} already exists")
            self._jobs[job.id] = replace(job)
        return job

    def get(self, job_id: str) -> Optional[ConversionJob]:
        job = self._jobs.get(job_id)
        return replace(job) if job else None

    def list(self) -> List[ConversionJob]:
        with self._lock:
            jobs = [replace(j) for j in self._jobs.values()]
        return sorted(jobs, key=lambda j: j.created_at, reverse=True)

    def update(self, job_id: str, **changes) -> Optional[ConversionJob]:
        with self._lock:
            job = self._jobs.get(job_id)
            if job is None:
                return None
            updated = _apply_changes(job, changes)
            self._jobs[job_id] = updated
        return replace(updated)


class InMemoryBlobStore(BlobStore):
    def __init__(self):
        self._blobs: Dict[str, bytes] = {}
        self._lock = threading.Lock()

    def put(self, key: str, data: bytes) -> None:
        with self._lock:
            self._blobs[key] = bytes(data)

    def get(self, key: str) -> bytes:
        return self._blobs[key]

    def delete(self, key: str) -> bool:
        with self._lock:
            return self._blobs.pop(key, None) is not None
