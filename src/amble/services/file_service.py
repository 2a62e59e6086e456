"""File service: upload, browse, search, download, delete and convert stored files.

All persistence goes through injected repositories and a blob store, so the
same service runs against SQLAlchemy + local disk in production and plain
dictionaries in tests.
"""
import logging
from typing import Iterable, Optional, Tuple

from amble.services.conversion.interfaces import ConversionService
from amble.services.conversion_result import ConversionResult
from amble.services.decoder import SourceFile
from amble.services.formats import normalize_token
from amble.services.search_service import Page, SearchParams, paginate, search_files
from amble.services.storage.interfaces import BlobStore, ConversionRepository, FileRepository
from amble.services.storage.records import (
    FORMAT_TOKEN_LENGTH, AppStats, ConversionJob, ConversionStatus, StoredFile,
)
from amble.services.text_extraction import extract_searchable_text
from amble.utils.file_utils import build_storage_key, generate_id

logger = logging.getLogger(__name__)


class RecordNotFound(LookupError):
    pass


def _clean_tags(tags: Optional[Iterable[str]]):
    cleaned = []
    for tag in tags or []:
        tag = tag.strip().lstrip('#').strip()
        if tag and tag not in cleaned:
            cleaned.append(tag)
    return cleaned


class FileService:
    def __init__(self, files: FileRepository, conversions: ConversionRepository, blobs: BlobStore,
                 converter: ConversionService, extract_text: bool = True, text_types: Iterable[str] = (),
                 text_max_length: int = 100000):
        self.files = files
        self.conversions = conversions
        self.blobs = blobs
        self.converter = converter
        self.extract_text = extract_text
        self.text_types = tuple(text_types)
        self.text_max_length = text_max_length

    # ---------------- Files ---------------- #
    def upload(self, content: bytes, original_name: str, name: Optional[str] = None,
               media_type: Optional[str] = None, topic: Optional[str] = None,
               description: Optional[str] = None, tags: Optional[Iterable[str]] = None) -> StoredFile:
        if not original_name:
            raise ValueError("A file name is required")
        source = SourceFile(content=content, filename=original_name, media_type=media_type)

        content_text = None
        if self.extract_text:
            content_text = extract_searchable_text(source, self.text_types, self.text_max_length)

        storage_key = build_storage_key('uploads', original_name)
        self.blobs.put(storage_key, content)
        record = StoredFile(
            id=generate_id(),
            name=(name or '').strip() or original_name,
            original_name=original_name,
            extension=source.extension[:FORMAT_TOKEN_LENGTH],
            media_type=media_type,
            file_size=len(content),
            storage_key=storage_key,
            topic=topic or None,
            description=description or None,
            tags=_clean_tags(tags),
            content_text=content_text,
        )
        try:
            record = self.files.insert(record)
        except Exception:
            self.blobs.delete(storage_key)
            raise
        logger.info("Uploaded %s as %s (%d bytes)", original_name, record.id, record.file_size)
        return record

    def get(self, file_id: str) -> StoredFile:
        record = self.files.get(file_id)
        if record is None:
            raise RecordNotFound(f"File not found: {file_id}")
        return record

    def list_files(self, page: int = 1, per_page: int = 9) -> Page[StoredFile]:
        return search_files(self.files, SearchParams(page=page, per_page=per_page))

    def search(self, params: SearchParams) -> Page[StoredFile]:
        return search_files(self.files, params)

    def download(self, file_id: str) -> Tuple[StoredFile, bytes]:
        record = self.get(file_id)
        data = self.blobs.get(record.storage_key)
        record = self.files.update(file_id, download_count=record.download_count + 1)
        return record, data

    def delete(self, file_id: str) -> bool:
        record = self.files.get(file_id)
        if record is None:
            return False
        if not self.blobs.delete(record.storage_key):
            logger.warning("Blob %s for file %s was already missing", record.storage_key, file_id)
        self.files.delete(file_id)
        logger.info("Deleted file %s (%s)", file_id, record.original_name)
        return True

    # ---------------- Conversions ---------------- #
    def _record_conversion(self, source: SourceFile, target_format: str, result: ConversionResult,
                           file_id: Optional[str] = None) -> ConversionJob:
        job = ConversionJob(
            id=generate_id(),
            original_name=source.filename,
            source_format=source.extension[:FORMAT_TOKEN_LENGTH],
            target_format=normalize_token(target_format)[:FORMAT_TOKEN_LENGTH],
            status=ConversionStatus.COMPLETED if result.success else ConversionStatus.FAILED,
            file_id=file_id,
        )
        if result.success:
            output_key = build_storage_key('converted', result.filename)
            self.blobs.put(output_key, result.output)
            job.output_name = result.filename
            job.output_size = result.size
            job.output_storage_key = output_key
            job.mime_type = result.mime_type
        else:
            job.error_message = result.error
            job.error_type = result.error_type
        return self.conversions.insert(job)

    def convert_upload(self, source: SourceFile, target_format: str) -> Tuple[ConversionResult, ConversionJob]:
        """Convert bytes that are not stored as a file and keep the output for download."""
        result = self.converter.convert(source, target_format)
        return result, self._record_conversion(source, target_format, result)

    def convert_stored(self, file_id: str, target_format: str) -> Tuple[ConversionResult, ConversionJob]:
        record = self.get(file_id)
        source = SourceFile(
            content=self.blobs.get(record.storage_key),
            filename=record.original_name,
            media_type=record.media_type,
        )
        result = self.converter.convert(source, target_format)
        return result, self._record_conversion(source, target_format, result, file_id=file_id)

    def get_conversion(self, job_id: str) -> ConversionJob:
        job = self.conversions.get(job_id)
        if job is None:
            raise RecordNotFound(f"Conversion not found: {job_id}")
        return job

    def list_conversions(self, page: int = 1, per_page: int = 20) -> Page[ConversionJob]:
        return paginate(self.conversions.list(), page, per_page)

    def download_conversion(self, job_id: str) -> Tuple[ConversionJob, bytes]:
        job = self.get_conversion(job_id)
        if job.status != ConversionStatus.COMPLETED or not job.output_storage_key:
            raise RecordNotFound(f"Conversion {job_id} has no output")
        data = self.blobs.get(job.output_storage_key)
        job = self.conversions.update(job_id, download_count=job.download_count + 1)
        return job, data

    # ---------------- Stats ---------------- #
    def stats(self) -> AppStats:
        files = self.files.list()
        conversions = self.conversions.list()
        return AppStats(
            total_files=len(files),
            total_downloads=sum(f.download_count for f in files) + sum(c.download_count for c in conversions),
            total_conversions=len(conversions),
        )
