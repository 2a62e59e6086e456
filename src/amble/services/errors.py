"""Conversion error taxonomy.

Every converter failure is one of these. The dispatcher turns them into a
failed ConversionResult, so none of them reach the caller as an exception.
"""


class ConversionError(Exception):
    """Base class for all conversion failures."""

    @property
    def kind(self) -> str:
        return type(self).__name__


class UnsupportedConversion(ConversionError):
    def __init__(self, source_format: str, target_format: str):
        self.source_format = source_format
        self.target_format = target_format
        super().__init__(f"Unsupported conversion: {source_format or '(none)'} to {target_format or '(none)'}")


class InvalidInput(ConversionError):
    """Content does not parse as the expected structure (e.g. bad JSON)."""


class InvalidShape(ConversionError):
    """Content parses but has the wrong structure (e.g. JSON root is not an array)."""


class InsufficientData(ConversionError):
    """Content parses but has nothing to convert (e.g. CSV with only a header)."""


class EncodingFailure(ConversionError):
    """An underlying decode/encode library failed; the message is passed through."""
