from __future__ import annotations

from dataclasses import dataclass, field, asdict
from datetime import datetime, timezone
from enum import Enum
from typing import List, Optional

from amble.utils.file_utils import format_file_size

# Width of the extension and format columns
FORMAT_TOKEN_LENGTH = 16


def utcnow() -> datetime:
    return datetime.now(timezone.utc)


class ConversionStatus(str, Enum):
    COMPLETED = "completed"
    FAILED = "failed"


@dataclass
class StoredFile:
    """Metadata of an uploaded file; the bytes live in a BlobStore under storage_key."""

    id: str
    name: str
    original_name: str
    extension: str
    media_type: Optional[str]
    file_size: int
    storage_key: str
    topic: Optional[str] = None
    description: Optional[str] = None
    tags: List[str] = field(default_factory=list)
    content_text: Optional[str] = None
    upload_date: datetime = field(default_factory=utcnow)
    download_count: int = 0
    is_public: bool = True

    def to_dict(self) -> dict:
        data = asdict(self)
        data.pop('content_text')
        data['file_size_display'] = format_file_size(self.file_size)
        data['upload_date'] = self.upload_date.isoformat()
        return data


@dataclass
class ConversionJob:
    """A finished conversion attempt and, on success, where its output is stored."""

    id: str
    original_name: str
    source_format: str
    target_format: str
    status: ConversionStatus
    file_id: Optional[str] = None
    output_name: Optional[str] = None
    output_size: Optional[int] = None
    output_storage_key: Optional[str] = None
    mime_type: Optional[str] = None
    error_message: Optional[str] = None
    error_type: Optional[str] = None
    created_at: datetime = field(default_factory=utcnow)
    download_count: int = 0

    def to_dict(self) -> dict:
        data = asdict(self)
        data['status'] = self.status.value
        data['created_at'] = self.created_at.isoformat()
        return data


@dataclass(frozen=True)
class AppStats:
    total_files: int
    total_downloads: int
    total_conversions: int

    def to_dict(self) -> dict:
        return asdict(self)
