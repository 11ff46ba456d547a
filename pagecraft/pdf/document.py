from __future__ import annotations

import logging
from dataclasses import dataclass
from typing import Any, Iterator, Sequence

import pymupdf as fitz

from pagecraft.config import get_settings
from pagecraft.errors import CorruptDocument
from pagecraft.types import DocumentMetadata


logger = logging.getLogger(__name__)

_METADATA_KEYS = ('title', 'author', 'subject', 'creator', 'producer')


@dataclass(frozen=True)
class Page:
    """A page addressed by index inside the arena that owns its resources."""

    arena: fitz.Document
    index: int

    @property
    def rect(self) -> fitz.Rect:
        return self.arena.load_page(self.index).rect

    @property
    def width(self) -> float:
        return float(self.rect.width)

    @property
    def height(self) -> float:
        return float(self.rect.height)


class Document:
    """Ordered pages plus metadata, backed by a PyMuPDF arena."""

    def __init__(self, arena: fitz.Document):
        self._arena = arena

    def __repr__(self) -> str:
        state = 'closed' if self.closed else f'{self.page_count} pages'
        return f'<Document {state}>'

    def __len__(self) -> int:
        return self.page_count

    def __enter__(self) -> Document:
        return self

    def __exit__(self, *exc_info: Any) -> None:
        self.close()

    @property
    def arena(self) -> fitz.Document:
        return self._arena

    @property
    def closed(self) -> bool:
        return bool(self._arena.is_closed)

    @property
    def page_count(self) -> int:
        return int(self._arena.page_count)

    @property
    def metadata(self) -> DocumentMetadata:
        return DocumentMetadata.from_raw(self._arena.metadata)

    def page(self, index: int) -> Page:
        total = self.page_count
        if index < 0 or index >= total:
            raise CorruptDocument(f'page index {index} is out of bounds for a {total}-page document')
        return Page(self._arena, index)

    def pages(self) -> Iterator[Page]:
        for index in range(self.page_count):
            yield Page(self._arena, index)

    def copy(self) -> Document:
        if self.page_count == 0:
            clone = create_empty()
            raw = self._arena.metadata or {}
            values = {key: raw.get(key) for key in _METADATA_KEYS if raw.get(key)}
            if values:
                clone.arena.set_metadata(values)
            return clone
        return Document(fitz.open(stream=self._arena.tobytes(), filetype='pdf'))

    def close(self) -> None:
        if not self.closed:
            self._arena.close()


def _as_bytes(data: Any) -> bytes:
    if isinstance(data, bytes):
        return data
    if isinstance(data, (bytearray, memoryview)):
        # private copy so the caller's buffer is never shared with MuPDF
        return bytes(data)
    raise TypeError(f'expected a bytes-like buffer, got {type(data).__name__}')


def load(data: bytes | bytearray | memoryview) -> Document:
    payload = _as_bytes(data)
    if not payload:
        raise CorruptDocument('document buffer is empty')

    try:
        arena = fitz.open(stream=payload, filetype='pdf')
    except Exception as exc:
        raise CorruptDocument(f'cannot parse document: {exc}') from exc

    if arena.is_encrypted:
        authenticated = False
        try:
            authenticated = bool(arena.authenticate(''))
        except Exception:
            authenticated = False
        if not authenticated:
            arena.close()
            raise CorruptDocument('document is encrypted and needs a password')
        logger.warning('Opened encrypted document with an empty password.')

    if arena.page_count == 0:
        arena.close()
        raise CorruptDocument('document has no pages')
    return Document(arena)


def create_empty() -> Document:
    arena = fitz.open()
    arena.set_metadata({'producer': get_settings().producer})
    return Document(arena)


def page_count(document: Document) -> int:
    return document.page_count


def metadata(document: Document) -> DocumentMetadata:
    return document.metadata


def copy_pages(source: Document, indices: Sequence[int]) -> list[Page]:
    """Copy pages of ``source`` (0-based ``indices``, order kept) into a staging arena."""
    indices = list(indices)
    total = source.page_count
    for index in indices:
        if isinstance(index, bool) or not isinstance(index, int) or index < 0 or index >= total:
            raise CorruptDocument(f'page index {index!r} is out of bounds for a {total}-page document')

    if not indices:
        return []
    staging = fitz.open()
    try:
        for index in indices:
            staging.insert_pdf(source.arena, from_page=index, to_page=index)
    except Exception:
        staging.close()
        raise
    return [Page(staging, position) for position in range(len(indices))]


def release_pages(pages: Sequence[Page]) -> None:
    """Close the staging arenas behind ``pages``."""
    arenas = {id(page.arena): page.arena for page in pages}
    for arena in arenas.values():
        if not arena.is_closed:
            arena.close()


def append_page(document: Document, page: Page) -> None:
    if page.arena is not document.arena:
        document.arena.insert_pdf(page.arena, from_page=page.index, to_page=page.index)
        return

    # MuPDF cannot graft an arena into itself; stage the page first.
    staged = copy_pages(document, [page.index])
    try:
        document.arena.insert_pdf(staged[0].arena, from_page=0, to_page=0)
    finally:
        release_pages(staged)
