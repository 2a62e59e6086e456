"""Searchable text extraction for uploaded files (markitdown).

Public function:
    extract_searchable_text(source, allowed_types, max_length) -> str | None
"""
import io
import logging
from typing import Iterable, Optional

from markitdown import StreamInfo

from amble.services.decoder import SourceFile
from amble.services.provider_factory import get_markitdown_instance

logger = logging.getLogger(__name__)


def extract_searchable_text(source: SourceFile, allowed_types: Iterable[str], max_length: int) -> Optional[str]:
    """Best effort: returns None when the type is not indexed or extraction fails."""
    ext = source.extension
    if ext not in set(allowed_types):
        return None

    md = get_markitdown_instance()
    try:
        result = md.convert_stream(
            io.BytesIO(source.content),
            stream_info=StreamInfo(extension=f".{ext}", filename=source.filename, mimetype=source.media_type),
        )
    except Exception as e:
        logger.warning("Text extraction failed for %s: %s", source.filename, e)
        return None

    text = (result.text_content or '').replace('\x00', '').strip()
    if not text:
        return None
    return text[:max_length]
