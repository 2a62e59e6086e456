from __future__ import annotations

from dataclasses import dataclass, field
from typing import Optional

from amble.services.errors import ConversionError


@dataclass(frozen=True)
class ConversionResult:
    """Outcome of a single conversion.

    Either success with output/filename/mime_type, or failure with error and
    error_type. The `completed` and `failed` constructors keep the two apart.
    """

    success: bool
    output: Optional[bytes] = field(default=None, repr=False)
    filename: Optional[str] = None
    mime_type: Optional[str] = None
    error: Optional[str] = None
    error_type: Optional[str] = None

    @classmethod
    def completed(cls, output: bytes, filename: str, mime_type: str) -> "ConversionResult":
        return cls(success=True, output=output, filename=filename, mime_type=mime_type)

    @classmethod
    def failed(cls, exc: ConversionError) -> "ConversionResult":
        return cls(success=False, error=str(exc), error_type=exc.kind)

    @property
    def size(self) -> int:
        return len(self.output) if self.output else 0

    def to_dict(self) -> dict:
        if self.success:
            return {'success': True, 'filename': self.filename, 'mime_type': self.mime_type, 'size': self.size}
        return {'success': False, 'error': self.error, 'error_type': self.error_type}
