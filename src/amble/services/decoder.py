"""Read a source file's bytes as text, data URL, raw buffer or raster image."""
from __future__ import annotations

import base64
import io
import mimetypes
import os
from dataclasses import dataclass, field
from typing import Optional

from PIL import Image

from amble.services.formats import FileFormat, DEFAULT_MIME_TYPE
from amble.utils.file_utils import extension_of


@dataclass(frozen=True)
class SourceFile:
    """Immutable input to a conversion: raw bytes plus the declared name and type."""

    content: bytes = field(repr=False)
    filename: str
    media_type: Optional[str] = None

    @property
    def extension(self) -> str:
        return extension_of(self.filename)

    @property
    def size(self) -> int:
        return len(self.content)

    @classmethod
    def from_path(cls, file_path: str, media_type: Optional[str] = None) -> "SourceFile":
        with open(file_path, 'rb') as f:
            content = f.read()
        guessed, _ = mimetypes.guess_type(file_path)
        return cls(content=content, filename=os.path.basename(file_path), media_type=media_type or guessed)


def read_bytes(source: SourceFile) -> bytes:
    return source.content


def read_text(source: SourceFile) -> str:
    # utf-8-sig drops a leading BOM that editors like to add to CSV exports
    return source.content.decode('utf-8-sig', errors='replace')


def declared_mime_type(source: SourceFile) -> str:
    if source.media_type:
        return source.media_type
    fmt = FileFormat.from_token(source.extension)
    return fmt.mime_type if fmt else DEFAULT_MIME_TYPE


def read_data_url(source: SourceFile) -> str:
    encoded = base64.b64encode(source.content).decode('ascii')
    return f"data:{declared_mime_type(source)};base64,{encoded}"


def open_image(source: SourceFile) -> Image.Image:
    """Decode the source as a raster image; the pixel data is loaded eagerly."""
    img = Image.open(io.BytesIO(source.content))
    img.load()
    return img
