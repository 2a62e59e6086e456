"""Known file formats and their canonical MIME types."""
from __future__ import annotations

from enum import Enum
from typing import Optional


class FileFormat(str, Enum):
    TXT = "txt"
    MD = "md"
    HTML = "html"
    LOG = "log"
    CSV = "csv"
    JSON = "json"
    XLSX = "xlsx"
    XLS = "xls"
    JPG = "jpg"
    JPEG = "jpeg"
    PNG = "png"
    WEBP = "webp"
    GIF = "gif"
    BMP = "bmp"
    PDF = "pdf"

    @property
    def mime_type(self) -> str:
        return MIME_TYPES[self]

    @property
    def is_image(self) -> bool:
        return self in IMAGE_FORMATS

    @classmethod
    def from_token(cls, token: Optional[str]) -> Optional["FileFormat"]:
        """Return the format for an extension/target token, or None if unknown."""
        normalized = normalize_token(token)
        try:
            return cls(normalized)
        except ValueError:
            return None


MIME_TYPES = {
    FileFormat.TXT: "text/plain",
    FileFormat.MD: "text/markdown",
    FileFormat.HTML: "text/html",
    FileFormat.LOG: "text/plain",
    FileFormat.CSV: "text/csv",
    FileFormat.JSON: "application/json",
    FileFormat.XLSX: "application/vnd.openxmlformats-officedocument.spreadsheetml.sheet",
    FileFormat.XLS: "application/vnd.ms-excel",
    FileFormat.JPG: "image/jpeg",
    FileFormat.JPEG: "image/jpeg",
    FileFormat.PNG: "image/png",
    FileFormat.WEBP: "image/webp",
    FileFormat.GIF: "image/gif",
    FileFormat.BMP: "image/bmp",
    FileFormat.PDF: "application/pdf",
}

IMAGE_FORMATS = frozenset({
    FileFormat.JPG, FileFormat.JPEG, FileFormat.PNG,
    FileFormat.WEBP, FileFormat.GIF, FileFormat.BMP,
})

DEFAULT_MIME_TYPE = "application/octet-stream"


def normalize_token(token: Optional[str]) -> str:
    """Lowercase a format token and drop surrounding whitespace and a leading dot."""
    return (token or "").strip().lower().lstrip(".")


def mime_type_for(token: Optional[str]) -> str:
    fmt = FileFormat.from_token(token)
    return fmt.mime_type if fmt else DEFAULT_MIME_TYPE
