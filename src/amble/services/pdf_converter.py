"""PDF generation for plain text and raster images (reportlab).

Text is laid out as fixed lines on A4 pages: wrapped to a 180 mm content
width, one line every 7 mm from 20 mm below the top edge, with a new page
once the cursor passes 280 mm.
"""
import io
import logging
from typing import List, Optional

from PIL import Image
from reportlab.lib.pagesizes import A4
from reportlab.lib.units import mm
from reportlab.lib.utils import ImageReader, simpleSplit
from reportlab.pdfgen import canvas

from amble.services.image_converter import flatten_to_rgb

logger = logging.getLogger(__name__)

FONT_NAME = 'Helvetica'
FONT_SIZE = 12
LEFT_MARGIN = 10 * mm
TOP_MARGIN = 20 * mm
BOTTOM_LIMIT = 280 * mm
LINE_HEIGHT = 7 * mm
CONTENT_WIDTH = 180 * mm
IMAGE_MARGIN = 10 * mm


def wrap_text(text: str) -> List[str]:
    """Split text into lines that fit CONTENT_WIDTH, keeping blank lines."""
    lines: List[str] = []
    normalized = text.replace('\r\n', '\n').replace('\r', '\n')
    for raw_line in normalized.split('\n'):
        lines.extend(simpleSplit(raw_line.expandtabs(4), FONT_NAME, FONT_SIZE, CONTENT_WIDTH) or [''])
    return lines


def text_to_pdf(text: str, title: Optional[str] = None) -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    if title:
        pdf.setTitle(title)
    page_height = A4[1]

    pdf.setFont(FONT_NAME, FONT_SIZE)
    y = TOP_MARGIN
    pages = 1
    for line in wrap_text(text):
        if y > BOTTOM_LIMIT:
            pdf.showPage()
            pdf.setFont(FONT_NAME, FONT_SIZE)
            y = TOP_MARGIN
            pages += 1
        # reportlab measures y from the bottom edge
        pdf.drawString(LEFT_MARGIN, page_height - y, line)
        y += LINE_HEIGHT
    pdf.showPage()
    pdf.save()
    logger.debug("Rendered text PDF: %d page(s), %d chars", pages, len(text))
    return buffer.getvalue()


def image_to_pdf(img: Image.Image, title: Optional[str] = None) -> bytes:
    """Embed a single image on one A4 page, scaled uniformly to fit the margins."""
    img = flatten_to_rgb(img)
    page_width, page_height = A4
    box_width = page_width - 2 * IMAGE_MARGIN
    box_height = page_height - 2 * IMAGE_MARGIN
    ratio = min(box_width / img.width, box_height / img.height)
    width = img.width * ratio
    height = img.height * ratio

    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=A4)
    if title:
        pdf.setTitle(title)
    pdf.drawImage(ImageReader(img), IMAGE_MARGIN, page_height - IMAGE_MARGIN - height, width=width, height=height)
    pdf.showPage()
    pdf.save()
    logger.debug("Rendered image PDF: %dx%d scaled by %.3f", img.width, img.height, ratio)
    return buffer.getvalue()
