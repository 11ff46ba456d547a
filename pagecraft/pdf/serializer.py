from __future__ import annotations

import logging
from io import BytesIO

from pypdf import PdfReader

from pagecraft.config import get_settings
from pagecraft.errors import SerializationFailure
from pagecraft.pdf.document import Document


logger = logging.getLogger(__name__)


def _verify(payload: bytes, expected_pages: int) -> None:
    try:
        reread = len(PdfReader(BytesIO(payload)).pages)
    except Exception as exc:
        raise SerializationFailure(f'serialized output cannot be re-read: {exc}') from exc
    if reread != expected_pages:
        raise SerializationFailure(
            f'serialized output has {reread} pages, expected {expected_pages}'
        )


def serialize(document: Document) -> bytes:
    """Encode ``document`` as PDF bytes without modifying it."""
    if document.closed:
        raise SerializationFailure('cannot serialize a closed document')
    expected_pages = document.page_count
    if expected_pages == 0:
        raise SerializationFailure('cannot serialize a document with no pages')

    settings = get_settings()
    try:
        payload = document.arena.tobytes(
            garbage=settings.serialize_garbage,
            deflate=settings.serialize_deflate,
        )
    except Exception as exc:
        raise SerializationFailure(f'cannot encode document: {exc}') from exc

    if settings.verify_output:
        _verify(payload, expected_pages)

    logger.debug('Serialized %s pages into %s bytes', expected_pages, len(payload))
    return payload
