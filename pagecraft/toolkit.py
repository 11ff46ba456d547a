"""Buffer-in / buffer-out entry points for callers that never touch a Document."""

from __future__ import annotations

import logging
from contextlib import ExitStack
from typing import Any, Sequence

from .config import get_settings
from .errors import CorruptDocument
from .pdf import composer
from .pdf.document import Document, load
from .pdf.inspect import describe_pdf
from .pdf.serializer import serialize
from .types import DocumentInfo, ImageInput, WatermarkStyle


logger = logging.getLogger(__name__)


def _check_size(data: bytes, *, label: str = 'document') -> None:
    limit = int(get_settings().max_input_bytes)
    size = len(data)
    if size > limit:
        logger.warning('Rejected %s of %s bytes (limit %s).', label, size, limit)
        raise CorruptDocument(f'{label} too large: {size} bytes, max allowed {limit} bytes')


def _open(stack: ExitStack, data: bytes) -> Document:
    _check_size(data)
    return stack.enter_context(load(data))


def _serialize_all(documents: list[Document]) -> list[bytes]:
    try:
        return [serialize(document) for document in documents]
    finally:
        for document in documents:
            document.close()


def merge_pdfs(buffers: Sequence[bytes], *, on_progress: composer.ProgressCallback | None = None) -> bytes:
    for data in buffers:
        _check_size(data)
    with ExitStack() as stack:
        documents = [_open(stack, data) for data in buffers]
        with composer.merge(documents, on_progress=on_progress) as merged:
            return serialize(merged)


def split_pdf(
    data: bytes,
    ranges: Sequence[Any],
    *,
    on_progress: composer.ProgressCallback | None = None,
) -> list[bytes]:
    with ExitStack() as stack:
        source = _open(stack, data)
        return _serialize_all(composer.split(source, ranges, on_progress=on_progress))


def extract_pages(
    data: bytes,
    selections: Sequence[Any],
    *,
    on_progress: composer.ProgressCallback | None = None,
) -> list[bytes]:
    with ExitStack() as stack:
        source = _open(stack, data)
        return _serialize_all(composer.extract(source, selections, on_progress=on_progress))


def images_to_pdf(
    images: Sequence[Any],
    *,
    on_progress: composer.ProgressCallback | None = None,
) -> bytes:
    inputs = [ImageInput.coerce(image) for image in images]
    for image in inputs:
        _check_size(image.data, label='image')
    with composer.images_to_pdf(inputs, on_progress=on_progress) as document:
        return serialize(document)


def add_watermark(data: bytes, text: str, *, style: WatermarkStyle | None = None) -> bytes:
    with ExitStack() as stack:
        source = _open(stack, data)
        with composer.watermark(source, text, style=style) as marked:
            return serialize(marked)


def annotate_pdf(data: bytes, page_number: int, annotation: Any, position: Any) -> bytes:
    with ExitStack() as stack:
        source = _open(stack, data)
        with composer.annotate(source, page_number, annotation, position) as annotated:
            return serialize(annotated)


def get_pdf_info(data: bytes) -> DocumentInfo:
    _check_size(data)
    return describe_pdf(data)
