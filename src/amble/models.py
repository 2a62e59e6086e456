from sqlalchemy import (Column, Integer, String, Text, TIMESTAMP, BigInteger, Boolean, JSON, ForeignKey, Index)

from amble.extensions import db
from amble.services.storage.records import FORMAT_TOKEN_LENGTH


class FileRecord(db.Model):
    __tablename__ = 'files'

    id = Column(String(32), primary_key=True)
    name = Column(String(255), nullable=False)
    original_name = Column(String(255), nullable=False)
    extension = Column(String(FORMAT_TOKEN_LENGTH))
    media_type = Column(String(255))
    file_size = Column(BigInteger, nullable=False, default=0)
    storage_key = Column(Text, nullable=False, unique=True)
    topic = Column(String(255))
    description = Column(Text)
    tags = Column(JSON, nullable=False, default=list)
    content_text = Column(Text)  # markitdown extraction, used for search only
    upload_date = Column(TIMESTAMP(timezone=True), nullable=False)
    download_count = Column(Integer, nullable=False, default=0)
    is_public = Column(Boolean, nullable=False, default=True)

    __table_args__ = (
        Index('idx_files_upload_date', 'upload_date'),
    )


class ConversionRecord(db.Model):
    __tablename__ = 'conversions'

    id = Column(String(32), primary_key=True)
    file_id = Column(String(32), ForeignKey('files.id', ondelete='SET NULL'), nullable=True)
    original_name = Column(String(255), nullable=False)
    source_format = Column(String(FORMAT_TOKEN_LENGTH), nullable=False)
    target_format = Column(String(FORMAT_TOKEN_LENGTH), nullable=False)
    status = Column(String(16), nullable=False)  # completed / failed
    output_name = Column(String(255))
    output_size = Column(BigInteger)
    output_storage_key = Column(Text)
    mime_type = Column(String(255))
    error_message = Column(Text)
    error_type = Column(String(64))
    created_at = Column(TIMESTAMP(timezone=True), nullable=False)
    download_count = Column(Integer, nullable=False, default=0)

    __table_args__ = (
        Index('idx_conversions_created_at', 'created_at'),
    )
