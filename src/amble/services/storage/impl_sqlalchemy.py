"""SQLAlchemy providers backed by the Flask-SQLAlchemy models.

Must be used inside an application context.
"""
from __future__ import annotations

from datetime import timezone
from typing import List, Optional

from sqlalchemy import Text, cast, or_

from amble.extensions import db
from amble.models import ConversionRecord, FileRecord
from amble.services.search_service import matches_query, split_query
from amble.services.storage.interfaces import ConversionRepository, FileRepository
from amble.services.storage.records import ConversionJob, ConversionStatus, StoredFile

_FILE_FIELDS = (
    'id', 'name', 'original_name', 'extension', 'media_type', 'file_size', 'storage_key', 'topic',
    'description', 'tags', 'content_text', 'upload_date', 'download_count', 'is_public',
)
_JOB_FIELDS = (
    'id', 'file_id', 'original_name', 'source_format', 'target_format', 'status', 'output_name',
    'output_size', 'output_storage_key', 'mime_type', 'error_message', 'error_type', 'created_at',
    'download_count',
)


def _as_utc(value):
    # SQLite hands back naive datetimes even for timezone-aware columns
    if value is not None and value.tzinfo is None:
        return value.replace(tzinfo=timezone.utc)
    return value


def _to_stored_file(row: FileRecord) -> StoredFile:
    data = {name: getattr(row, name) for name in _FILE_FIELDS}
    data['tags'] = list(data['tags'] or [])
    data['upload_date'] = _as_utc(data['upload_date'])
    return StoredFile(**data)


def _to_job(row: ConversionRecord) -> ConversionJob:
    data = {name: getattr(row, name) for name in _JOB_FIELDS}
    data['status'] = ConversionStatus(data['status'])
    data['created_at'] = _as_utc(data['created_at'])
    return ConversionJob(**data)


def _check_fields(model, changes):
    unknown = [key for key in changes if not hasattr(model, key)]
    if unknown:
        raise AttributeError(f"Unknown field(s) for {model.__name__}: {', '.join(unknown)}")


def _sql_filterable(term: str) -> bool:
    # SQLite lower() folds ASCII only and the tags JSON text escapes quotes and backslashes
    return term.isascii() and '"' not in term and '\\' not in term


class SqlAlchemyFileRepository(FileRepository):
    def insert(self, record: StoredFile) -> StoredFile:
        row = FileRecord(**{name: getattr(record, name) for name in _FILE_FIELDS})
        row.tags = list(record.tags or [])
        db.session.add(row)
        db.session.commit()
        return _to_stored_file(row)

    def get(self, file_id: str) -> Optional[StoredFile]:
        row = db.session.get(FileRecord, file_id)
        return _to_stored_file(row) if row else None

    def list(self) -> List[StoredFile]:
        rows = FileRecord.query.order_by(FileRecord.upload_date.desc()).all()
        return [_to_stored_file(row) for row in rows]

    def search(self, query: str) -> List[StoredFile]:
        """Narrow with ILIKE in the database, then apply the exact matching rules.

        Terms the database cannot compare reliably are left to `matches_query`.
        """
        tag_terms, plain_terms = split_query(query)
        q = FileRecord.query
        tags_text = cast(FileRecord.tags, Text)
        for term in filter(_sql_filterable, plain_terms):
            pattern = f"%{term}%"
            q = q.filter(or_(
                FileRecord.name.ilike(pattern),
                FileRecord.original_name.ilike(pattern),
                FileRecord.topic.ilike(pattern),
                FileRecord.description.ilike(pattern),
                FileRecord.content_text.ilike(pattern),
                tags_text.ilike(pattern),
            ))
        # one unfilterable tag term could be the match, so narrow only when all are filterable
        if tag_terms and all(map(_sql_filterable, tag_terms)):
            q = q.filter(or_(*(tags_text.ilike(f"%{term}%") for term in tag_terms)))
        rows = q.order_by(FileRecord.upload_date.desc()).all()
        return [record for record in map(_to_stored_file, rows) if matches_query(record, query)]

    def update(self, file_id: str, **changes) -> Optional[StoredFile]:
        _check_fields(FileRecord, changes)
        row = db.session.get(FileRecord, file_id)
        if row is None:
            return None
        for key, value in changes.items():
            setattr(row, key, list(value) if key == 'tags' else value)
        db.session.commit()
        return _to_stored_file(row)

    def delete(self, file_id: str) -> bool:
        row = db.session.get(FileRecord, file_id)
        if row is None:
            return False
        db.session.delete(row)
        db.session.commit()
        return True


class SqlAlchemyConversionRepository(ConversionRepository):
    def insert(self, job: ConversionJob) -> ConversionJob:
        data = {name: getattr(job, name) for name in _JOB_FIELDS}
        data['status'] = job.status.value
        row = ConversionRecord(**data)
        db.session.add(row)
        db.session.commit()
        return _to_job(row)

    def get(self, job_id: str) -> Optional[ConversionJob]:
        row = db.session.get(ConversionRecord, job_id)
        return _to_job(row) if row else None

    def list(self) -> List[ConversionJob]:
        rows = ConversionRecord.query.order_by(ConversionRecord.created_at.desc()).all()
        return [_to_job(row) for row in rows]

    def update(self, job_id: str, **changes) -> Optional[ConversionJob]:
        _check_fields(ConversionRecord, changes)
        row = db.session.get(ConversionRecord, job_id)
        if row is None:
            return None
        for key, value in changes.items():
            setattr(row, key, value.value if isinstance(value, ConversionStatus) else value)
        db.session.commit()
        return _to_job(row)
