from __future__ import annotations

from typing import List

from amble.services.capabilities import supported_targets
from amble.services.conversion.interfaces import ConversionService
from amble.services.conversion_result import ConversionResult
from amble.services.converters import convert_file, convert_file_async
from amble.services.decoder import SourceFile


class DefaultConversionService(ConversionService):
    """Default conversion service backed by the in-process converter registry."""

    def supported_targets(self, filename: str) -> List[str]:
        return supported_targets(filename)

    def convert(self, source: SourceFile, target_format: str) -> ConversionResult:
        return convert_file(source, target_format)

    async def convert_async(self, source: SourceFile, target_format: str) -> ConversionResult:
        return await convert_file_async(source, target_format)
