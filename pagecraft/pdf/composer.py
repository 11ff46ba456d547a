from __future__ import annotations

import logging
from typing import Any, Callable, Iterable, Sequence

from pydantic import ValidationError

from pagecraft.config import get_settings
from pagecraft.errors import EmptyInputSet, InvalidAnnotation, InvalidPageRange
from pagecraft.pdf.annotations import draw_annotation, draw_watermark
from pagecraft.pdf.document import Document, append_page, copy_pages, create_empty, release_pages
from pagecraft.pdf.images import embed_image, normalize_mime_type
from pagecraft.ranges import PageSelection, coerce_range, resolve, validate_range
from pagecraft.types import ImageInput, PageRange, QuickSelector, WatermarkStyle, parse_annotation


logger = logging.getLogger(__name__)

ProgressCallback = Callable[[float], None]


def _report(on_progress: ProgressCallback | None, done: int, total: int) -> None:
    if on_progress is not None:
        on_progress(100.0 * done / total)


def _close_all(documents: Iterable[Document]) -> None:
    for document in documents:
        document.close()


def _append_copies(output: Document, source: Document, indices: Sequence[int]) -> None:
    pages = copy_pages(source, indices)
    try:
        for page in pages:
            append_page(output, page)
    finally:
        release_pages(pages)


def _copy_page_numbers(source: Document, page_numbers: Sequence[int]) -> Document:
    output = create_empty()
    try:
        _append_copies(output, source, [number - 1 for number in page_numbers])
    except Exception:
        output.close()
        raise
    return output


def merge(
    documents: Sequence[Document],
    *,
    min_count: int | None = None,
    on_progress: ProgressCallback | None = None,
) -> Document:
    """Concatenate the pages of ``documents`` in order into a new Document."""
    documents = list(documents)
    required = get_settings().merge_min_documents if min_count is None else min_count
    if len(documents) < required:
        raise EmptyInputSet(
            f'merge needs at least {required} documents, got {len(documents)}',
            required=required,
            received=len(documents),
        )

    output = create_empty()
    try:
        for position, document in enumerate(documents, start=1):
            _append_copies(output, document, range(document.page_count))
            _report(on_progress, position, len(documents))
    except Exception:
        output.close()
        raise

    logger.info('Merged %s documents into %s pages', len(documents), output.page_count)
    return output


def split(
    document: Document,
    ranges: Sequence[Any],
    *,
    on_progress: ProgressCallback | None = None,
) -> list[Document]:
    ranges = list(ranges)
    if not ranges:
        raise EmptyInputSet('split needs at least one page range', required=1, received=0)

    total = document.page_count
    validated: list[PageRange] = []
    for raw in ranges:
        page_range = coerce_range(raw)
        validated.append(validate_range(page_range.start, page_range.end, total))

    outputs: list[Document] = []
    try:
        for position, page_range in enumerate(validated, start=1):
            outputs.append(_copy_page_numbers(document, page_range.page_numbers()))
            _report(on_progress, position, len(validated))
    except Exception:
        _close_all(outputs)
        raise

    logger.info('Split %s-page document into %s parts', total, len(outputs))
    return outputs


def _selection_pages(selection: Any, total_pages: int) -> list[int]:
    if isinstance(selection, PageSelection):
        selection = selection.pages
    if isinstance(selection, (str, QuickSelector, PageRange, tuple)):
        return resolve(selection, total_pages)

    try:
        pages = list(selection)
    except TypeError as exc:
        raise InvalidPageRange(
            f'malformed page selection: {selection!r}',
            reason='malformed_range',
            total_pages=total_pages,
        ) from exc
    if not pages:
        raise InvalidPageRange(
            'page selection is empty',
            reason='empty_selection',
            total_pages=total_pages,
        )
    for number in pages:
        if isinstance(number, bool) or not isinstance(number, int):
            raise InvalidPageRange(
                f'page number must be an integer, got {number!r}',
                reason='malformed_range',
                total_pages=total_pages,
            )
        validate_range(number, number, total_pages)
    return pages


def extract(
    document: Document,
    selections: Sequence[Any],
    *,
    on_progress: ProgressCallback | None = None,
) -> list[Document]:
    """Build one Document per page group; groups may be non-contiguous (odd/even)."""
    selections = list(selections)
    if not selections:
        raise EmptyInputSet('extract needs at least one page selection', required=1, received=0)

    total = document.page_count
    groups = [_selection_pages(selection, total) for selection in selections]

    outputs: list[Document] = []
    try:
        for position, pages in enumerate(groups, start=1):
            outputs.append(_copy_page_numbers(document, pages))
            _report(on_progress, position, len(groups))
    except Exception:
        _close_all(outputs)
        raise

    logger.info('Extracted %s selections from %s-page document', len(outputs), total)
    return outputs


def images_to_pdf(
    images: Sequence[Any],
    *,
    on_progress: ProgressCallback | None = None,
) -> Document:
    inputs = [ImageInput.coerce(image) for image in images]
    if not inputs:
        raise EmptyInputSet('at least one image is required', required=1, received=0)
    for image in inputs:
        normalize_mime_type(image.mime_type)

    output = create_empty()
    try:
        for position, image in enumerate(inputs, start=1):
            page = embed_image(image.data, image.mime_type)
            try:
                append_page(output, page)
            finally:
                release_pages([page])
            _report(on_progress, position, len(inputs))
    except Exception:
        output.close()
        raise

    logger.info('Converted %s images into a PDF', len(inputs))
    return output


def watermark(document: Document, text: str, *, style: WatermarkStyle | None = None) -> Document:
    if not str(text or '').strip():
        raise InvalidAnnotation('watermark text must not be empty')
    style = style or WatermarkStyle.from_settings()

    output = document.copy()
    try:
        for page in output.arena:
            draw_watermark(page, text, style)
    except Exception:
        output.close()
        raise

    logger.info('Watermarked %s pages', output.page_count)
    return output


def annotate(document: Document, page_number: int, annotation: Any, position: Any) -> Document:
    """Return a copy of ``document`` with one annotation drawn on a 1-based page."""
    total = document.page_count
    validate_range(page_number, page_number, total)
    if isinstance(annotation, dict):
        try:
            annotation = parse_annotation(annotation)
        except ValidationError as exc:
            raise InvalidAnnotation(f'invalid annotation: {exc}') from exc

    output = document.copy()
    try:
        draw_annotation(output.arena.load_page(page_number - 1), annotation, position)
    except Exception:
        output.close()
        raise

    logger.info('Annotated page %s with %s', page_number, getattr(annotation, 'kind', annotation))
    return output
