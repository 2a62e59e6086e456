from __future__ import annotations

from typing import List, Protocol

from amble.services.conversion_result import ConversionResult
from amble.services.decoder import SourceFile


class ConversionService(Protocol):
    """Conversion service interface for converting a file to another format."""

    def supported_targets(self, filename: str) -> List[str]:
        """Target format tokens available for the given file name."""
        ...

    def convert(self, source: SourceFile, target_format: str) -> ConversionResult:
        """Convert the given file.

        Args:
            source: The file bytes with their declared name and media type.
            target_format: Target format token such as "pdf" or "csv".
        Returns:
            ConversionResult describing success, output bytes and file name, or the failure.
        """
        ...

    async def convert_async(self, source: SourceFile, target_format: str) -> ConversionResult:
        ...
