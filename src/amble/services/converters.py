import asyncio
import logging
from typing import Iterable, List, Tuple

from amble.services import markup_converter, pdf_converter, tabular_converter
from amble.services.capabilities import capability_pairs, supported_targets
from amble.services.conversion_result import ConversionResult
from amble.services.decoder import SourceFile, open_image, read_bytes, read_text
from amble.services.errors import ConversionError, EncodingFailure, UnsupportedConversion
from amble.services.formats import FileFormat, IMAGE_FORMATS, normalize_token
from amble.services.image_converter import reencode_image
from amble.services.registry import register, get_handler, registered_pairs
from amble.utils.file_utils import extension_of, replace_extension

logger = logging.getLogger(__name__)

F = FileFormat
PLAIN_TEXT_SOURCES = (F.TXT, F.LOG, F.CSV, F.JSON)
IMAGE_TARGETS = (F.JPG, F.JPEG, F.PNG, F.WEBP)


def _encode_text(text: str) -> bytes:
    return text.encode('utf-8')


# ---------------- PDF ---------------- #
@register(PLAIN_TEXT_SOURCES, [F.PDF])
def _convert_text_to_pdf(source: SourceFile, target: FileFormat) -> bytes:
    return pdf_converter.text_to_pdf(read_text(source), title=source.filename)


@register([F.MD], [F.PDF])
def _convert_markdown_to_pdf(source: SourceFile, target: FileFormat) -> bytes:
    # Rich formatting is dropped on purpose; only the rendered text survives
    text = markup_converter.markdown_to_text(read_text(source))
    return pdf_converter.text_to_pdf(text, title=source.filename)


@register([F.HTML], [F.PDF])
def _convert_html_to_pdf(source: SourceFile, target: FileFormat) -> bytes:
    text = markup_converter.html_to_text(read_text(source))
    return pdf_converter.text_to_pdf(text, title=source.filename)


@register(IMAGE_FORMATS, [F.PDF])
def _convert_image_to_pdf(source: SourceFile, target: FileFormat) -> bytes:
    with open_image(source) as img:
        return pdf_converter.image_to_pdf(img, title=source.filename)


# ---------------- Structured data ---------------- #
@register([F.CSV], [F.JSON])
def _convert_csv_to_json(source: SourceFile, target: FileFormat) -> bytes:
    return _encode_text(tabular_converter.csv_to_json(read_text(source)))


@register([F.JSON], [F.CSV])
def _convert_json_to_csv(source: SourceFile, target: FileFormat) -> bytes:
    return _encode_text(tabular_converter.json_to_csv(read_text(source)))


@register([F.CSV], [F.XLSX])
def _convert_csv_to_xlsx(source: SourceFile, target: FileFormat) -> bytes:
    return tabular_converter.csv_to_xlsx(read_text(source))


@register([F.JSON], [F.XLSX])
def _convert_json_to_xlsx(source: SourceFile, target: FileFormat) -> bytes:
    return tabular_converter.json_to_xlsx(read_text(source))


@register([F.XLSX, F.XLS], [F.CSV, F.TXT])
def _convert_spreadsheet_to_csv(source: SourceFile, target: FileFormat) -> bytes:
    rows = tabular_converter.read_sheet_rows(read_bytes(source), legacy=source.extension == F.XLS.value)
    return _encode_text(tabular_converter.sheet_to_csv(rows))


@register([F.XLSX, F.XLS], [F.JSON])
def _convert_spreadsheet_to_json(source: SourceFile, target: FileFormat) -> bytes:
    rows = tabular_converter.read_sheet_rows(read_bytes(source), legacy=source.extension == F.XLS.value)
    return _encode_text(tabular_converter.sheet_to_json(rows))


# ---------------- Text ---------------- #
@register([F.MD], [F.HTML])
def _convert_markdown_to_html(source: SourceFile, target: FileFormat) -> bytes:
    return _encode_text(markup_converter.markdown_to_html_document(read_text(source), title=source.filename))


@register([F.HTML], [F.TXT])
def _convert_html_to_text(source: SourceFile, target: FileFormat) -> bytes:
    return _encode_text(markup_converter.html_to_text(read_text(source)))


@register([F.MD, F.LOG, F.CSV, F.JSON], [F.TXT])
def _convert_to_plain_text(source: SourceFile, target: FileFormat) -> bytes:
    return _encode_text(read_text(source))


# ---------------- Images ---------------- #
@register(IMAGE_FORMATS, IMAGE_TARGETS)
def _convert_image_format(source: SourceFile, target: FileFormat) -> bytes:
    with open_image(source) as img:
        return reencode_image(img, target)


def _verify_registry() -> None:
    registered = set(registered_pairs())
    missing = [pair for pair in capability_pairs() if pair not in registered]
    if missing:
        raise RuntimeError(f"No converter registered for: {', '.join(f'{s}->{t}' for s, t in missing)}")


_verify_registry()


def convert_file(source: SourceFile, target_format: str) -> ConversionResult:
    """
    Convert `source` to `target_format`.

    Never raises: unsupported pairs and converter failures come back as a
    failed ConversionResult carrying the error kind.
    """
    source_format = extension_of(source.filename)
    target = normalize_token(target_format)

    if target not in supported_targets(source.filename):
        error = UnsupportedConversion(source_format, target)
        logger.warning("Rejected conversion of %s: %s", source.filename, error)
        return ConversionResult.failed(error)

    source_fmt = FileFormat(source_format)
    target_fmt = FileFormat(target)
    handler = get_handler(source_fmt, target_fmt)
    if handler is None:
        return ConversionResult.failed(UnsupportedConversion(source_format, target))

    logger.debug("Converting %s (%d bytes) %s -> %s via %s",
                 source.filename, source.size, source_format, target, handler.__name__)
    try:
        output = handler(source, target_fmt)
    except ConversionError as e:
        logger.warning("Conversion %s -> %s failed for %s: [%s] %s", source_format, target, source.filename, e.kind, e)
        return ConversionResult.failed(e)
    except Exception as e:
        logger.error("Converter %s raised for %s: %s", handler.__name__, source.filename, e, exc_info=True)
        return ConversionResult.failed(EncodingFailure(str(e) or type(e).__name__))

    filename = replace_extension(source.filename, target)
    logger.info("Converted %s -> %s (%d bytes)", source.filename, filename, len(output))
    return ConversionResult.completed(output, filename=filename, mime_type=target_fmt.mime_type)


async def convert_file_async(source: SourceFile, target_format: str) -> ConversionResult:
    """Run a conversion on a worker thread so other coroutines keep running."""
    return await asyncio.to_thread(convert_file, source, target_format)


async def convert_batch(requests: Iterable[Tuple[SourceFile, str]]) -> List[ConversionResult]:
    """Convert several requests concurrently; results keep the input order."""
    return list(await asyncio.gather(*(convert_file_async(source, target) for source, target in requests)))
