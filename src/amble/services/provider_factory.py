"""Provider factory: MarkItDown instance, conversion service and storage backends."""
from typing import Optional, TYPE_CHECKING

from flask import Flask, current_app
from markitdown import MarkItDown

if TYPE_CHECKING:  # Avoid runtime import cycles
    from amble.services.conversion.interfaces import ConversionService
    from amble.services.file_service import FileService

_md_instance: Optional[MarkItDown] = None

FILE_SERVICE_KEY = 'amble.file_service'


def get_markitdown_instance() -> MarkItDown:
    global _md_instance
    if _md_instance is None:
        _md_instance = MarkItDown()
    return _md_instance


def build_conversion_service() -> "ConversionService":
    """Factory for conversion service; keeps callers independent of the registry module."""
    from amble.services.conversion.impl_default import DefaultConversionService

    return DefaultConversionService()


def build_repositories(config):
    backend = (config.get('REPOSITORY_BACKEND') or 'sqlalchemy').lower()
    if backend == 'memory':
        from amble.services.storage.impl_memory import InMemoryConversionRepository, InMemoryFileRepository
        return InMemoryFileRepository(), InMemoryConversionRepository()
    if backend == 'sqlalchemy':
        from amble.services.storage.impl_sqlalchemy import SqlAlchemyConversionRepository, SqlAlchemyFileRepository
        return SqlAlchemyFileRepository(), SqlAlchemyConversionRepository()
    raise ValueError(f"Unknown REPOSITORY_BACKEND: {backend}")


def build_blob_store(config):
    backend = (config.get('BLOB_BACKEND') or 'local').lower()
    if backend == 'memory':
        from amble.services.storage.impl_memory import InMemoryBlobStore
        return InMemoryBlobStore()
    if backend == 'local':
        from amble.services.storage.impl_local import LocalBlobStore
        return LocalBlobStore(config['STORAGE_DIR'])
    raise ValueError(f"Unknown BLOB_BACKEND: {backend}")


def build_file_service(config) -> "FileService":
    from amble.services.file_service import FileService

    files, conversions = build_repositories(config)
    return FileService(
        files=files,
        conversions=conversions,
        blobs=build_blob_store(config),
        converter=build_conversion_service(),
        extract_text=config.get('EXTRACT_TEXT_ON_UPLOAD', True),
        text_types=config.get('TEXT_EXTRACTION_TYPES', ()),
        text_max_length=config.get('SEARCH_TEXT_MAX_LENGTH', 100000),
    )


def init_services(app: Flask) -> None:
    app.extensions[FILE_SERVICE_KEY] = build_file_service(app.config)


def get_file_service() -> "FileService":
    return current_app.extensions[FILE_SERVICE_KEY]
