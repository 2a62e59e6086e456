"""Raster image re-encoding (Pillow).

Public functions:
    flatten_to_rgb(img) -> Image
    reencode_image(img, target) -> bytes
"""
import io
import logging

from PIL import Image

from amble.services.formats import FileFormat

logger = logging.getLogger(__name__)

PIL_FORMATS = {
    FileFormat.JPG: 'JPEG',
    FileFormat.JPEG: 'JPEG',
    FileFormat.PNG: 'PNG',
    FileFormat.WEBP: 'WEBP',
}

# Lossy targets only; PNG stays lossless.
QUALITY = {
    FileFormat.JPG: 92,
    FileFormat.JPEG: 92,
    FileFormat.WEBP: 90,
}


def flatten_to_rgb(img: Image.Image) -> Image.Image:
    """Return an RGB copy of `img`, compositing any transparency onto white."""
    if img.mode in ('RGBA', 'LA', 'P'):
        if img.mode == 'P':
            img = img.convert('RGBA')
        background = Image.new('RGB', img.size, (255, 255, 255))
        background.paste(img, mask=img.split()[-1])
        return background
    if img.mode != 'RGB':
        return img.convert('RGB')
    return img


def reencode_image(img: Image.Image, target: FileFormat) -> bytes:
    pil_format = PIL_FORMATS.get(target)
    if pil_format is None:
        raise ValueError(f"Cannot encode images as {target.value}")

    save_kwargs = {}
    if pil_format == 'JPEG':
        img = flatten_to_rgb(img)
        save_kwargs['quality'] = QUALITY[target]
    elif pil_format == 'WEBP':
        if img.mode not in ('RGB', 'RGBA'):
            img = img.convert('RGBA')
        save_kwargs['quality'] = QUALITY[target]
    else:
        if img.mode not in ('1', 'L', 'LA', 'P', 'RGB', 'RGBA'):
            img = img.convert('RGBA')
        save_kwargs['optimize'] = True

    buffer = io.BytesIO()
    img.save(buffer, format=pil_format, **save_kwargs)
    logger.debug("Re-encoded %s image %dx%d as %s", img.mode, img.width, img.height, pil_format)
    return buffer.getvalue()
