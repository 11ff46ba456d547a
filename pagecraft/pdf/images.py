from __future__ import annotations

import logging

import pymupdf as fitz

from pagecraft.errors import InvalidImage, UnsupportedImageType
from pagecraft.pdf.document import Page


logger = logging.getLogger(__name__)

PNG_MIME = 'image/png'
JPEG_MIME = 'image/jpeg'

_MIME_ALIASES: dict[str, str] = {
    'image/png': PNG_MIME,
    'image/x-png': PNG_MIME,
    'png': PNG_MIME,
    'image/jpeg': JPEG_MIME,
    'image/jpg': JPEG_MIME,
    'image/pjpeg': JPEG_MIME,
    'jpeg': JPEG_MIME,
    'jpg': JPEG_MIME,
}

_SIGNATURES: dict[str, tuple[bytes, ...]] = {
    PNG_MIME: (b'\x89PNG\r\n\x1a\n',),
    JPEG_MIME: (b'\xff\xd8\xff',),
}


def normalize_mime_type(mime_type: str | None) -> str:
    token = str(mime_type or '').split(';', 1)[0].strip().lower()
    normalized = _MIME_ALIASES.get(token)
    if normalized is None:
        raise UnsupportedImageType(f'Unsupported image type: {mime_type!r}', mime_type=mime_type)
    return normalized


def image_size(data: bytes, mime_type: str) -> tuple[int, int]:
    """Native pixel size of a PNG/JPEG buffer."""
    normalized = normalize_mime_type(mime_type)
    if not data or not data.startswith(_SIGNATURES[normalized]):
        raise InvalidImage(
            f'image bytes are not a valid {normalized} payload',
            mime_type=mime_type,
        )
    try:
        pixmap = fitz.Pixmap(data)
    except Exception as exc:
        raise InvalidImage(f'cannot decode {normalized} image: {exc}', mime_type=mime_type) from exc
    width, height = int(pixmap.width), int(pixmap.height)
    pixmap = None
    if width <= 0 or height <= 0:
        raise InvalidImage(f'{normalized} image has no pixels', mime_type=mime_type)
    return width, height


def embed_image(data: bytes | bytearray | memoryview, mime_type: str) -> Page:
    """Build a single page sized to the image's pixel dimensions, image drawn edge to edge."""
    payload = bytes(data)
    width, height = image_size(payload, mime_type)

    staging = fitz.open()
    page = staging.new_page(width=width, height=height)
    try:
        page.insert_image(page.rect, stream=payload, keep_proportion=False)
    except Exception as exc:
        staging.close()
        raise InvalidImage(f'cannot embed image: {exc}', mime_type=mime_type) from exc

    logger.debug('Embedded %s image as %sx%s page', mime_type, width, height)
    return Page(staging, 0)
