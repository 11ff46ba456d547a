from __future__ import annotations

import logging
from io import BytesIO
from typing import Any

from pypdf import PdfReader
from pypdf.errors import PyPdfError

from pagecraft.errors import CorruptDocument
from pagecraft.types import DocumentInfo, DocumentMetadata


logger = logging.getLogger(__name__)


def open_reader(data: bytes) -> PdfReader:
    if not data:
        raise CorruptDocument('document buffer is empty')
    try:
        reader = PdfReader(BytesIO(bytes(data)))
    except Exception as exc:
        raise CorruptDocument(f'cannot parse document: {exc}') from exc

    if getattr(reader, 'is_encrypted', False):
        try:
            reader.decrypt('')
        except Exception as exc:
            raise CorruptDocument('document is encrypted and needs a password') from exc
        logger.warning('Read encrypted document with an empty password.')
    return reader


def _raw_metadata(reader: PdfReader) -> dict[str, Any]:
    info = reader.metadata
    if info is None:
        return {}
    return {
        'title': info.title,
        'author': info.author,
        'subject': info.subject,
        'creator': info.creator,
    }


def describe_pdf(data: bytes) -> DocumentInfo:
    reader = open_reader(data)
    try:
        page_count = len(reader.pages)
        raw = _raw_metadata(reader)
    except (PyPdfError, ValueError, KeyError) as exc:
        raise CorruptDocument(f'cannot read document structure: {exc}') from exc
    return DocumentInfo(page_count=page_count, metadata=DocumentMetadata.from_raw(raw))


def extract_page_texts(data: bytes) -> list[str]:
    reader = open_reader(data)
    pages: list[str] = []
    for page in reader.pages:
        text = (page.extract_text() or '').strip()
        pages.append(text)
    return pages
