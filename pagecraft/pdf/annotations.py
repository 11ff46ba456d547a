from __future__ import annotations

import logging
import math
from pathlib import Path
from typing import Any

import pymupdf as fitz

from pagecraft.config import get_settings
from pagecraft.errors import InvalidAnnotation
from pagecraft.pdf.document import Page
from pagecraft.types import (
    ArrowAnnotation,
    CircleAnnotation,
    DrawAnnotation,
    HighlightAnnotation,
    Point,
    RectangleAnnotation,
    TextAnnotation,
    WatermarkStyle,
)


logger = logging.getLogger(__name__)

ARROW_HEAD_ANGLE = math.radians(30.0)
ARROW_HEAD_MIN_LENGTH = 8.0

CJK_FALLBACK_FONT = 'china-s'
UNICODE_FONT_NAME = 'pcunicode'


def _contains_cjk(value: str) -> bool:
    for char in str(value or ''):
        code = ord(char)
        if (
            0x4E00 <= code <= 0x9FFF  # CJK Unified Ideographs
            or 0x3400 <= code <= 0x4DBF  # CJK Extension A
            or 0xF900 <= code <= 0xFAFF  # CJK Compatibility Ideographs
        ):
            return True
    return False


def _latin_encodable(value: str) -> bool:
    # base-14 fonts are written with a Latin-1 encoding; anything above is lost
    return all(ord(char) < 256 for char in value)


def _font_candidates(text: str) -> list[tuple[str, Path | None]]:
    candidates: list[tuple[str, Path | None]] = []
    font_file = get_settings().unicode_font_file
    if font_file is not None:
        candidates.append((UNICODE_FONT_NAME, Path(font_file)))
    if _contains_cjk(text):
        candidates.insert(0, (CJK_FALLBACK_FONT, None))
    else:
        candidates.append((CJK_FALLBACK_FONT, None))
    return candidates


def _covers(font: fitz.Font, text: str) -> bool:
    return all(char.isspace() or font.has_glyph(ord(char)) for char in text)


def _resolve_font(page: Any, text: str, preferred: str) -> tuple[str, fitz.Font | None]:
    """Pick a font that can draw every character of ``text`` on ``page``.

    Latin-1 text keeps ``preferred``. Otherwise the configured font file and the
    built-in CJK font are tried; the chosen file font is embedded in the page.
    """
    if _latin_encodable(text):
        return preferred, None

    for font_name, font_path in _font_candidates(text):
        try:
            if font_path is None:
                font = fitz.Font(font_name)
            else:
                font = fitz.Font(fontfile=str(font_path))
        except Exception as exc:
            logger.debug('Font %s unavailable: %s', font_path or font_name, exc)
            continue
        if not _covers(font, text):
            continue
        if font_path is not None:
            page.insert_font(fontname=font_name, fontfile=str(font_path))
        return font_name, font

    raise InvalidAnnotation(f'no available font can draw {text!r}')


def _measure_text_width(
    text: str,
    *,
    font_name: str,
    font_size: float,
    font: fitz.Font | None = None,
) -> float:
    try:
        if font is not None:
            measured = float(font.text_length(text, fontsize=font_size))
        else:
            measured = float(fitz.get_text_length(text, fontname=font_name, fontsize=font_size))
        if measured > 0:
            return measured
    except Exception:
        logger.debug('Font %s cannot measure text; using an estimate.', font_name)
    return float(len(text)) * font_size * 0.52


def _check_position(page_rect: fitz.Rect, position: Point) -> None:
    inside_x = page_rect.x0 <= position.x <= page_rect.x1
    inside_y = page_rect.y0 <= position.y <= page_rect.y1
    if not (inside_x and inside_y):
        raise InvalidAnnotation(
            f'position ({position.x:g}, {position.y:g}) lies outside the '
            f'{page_rect.width:g}x{page_rect.height:g} page'
        )


def _draw_text(page: Any, annotation: TextAnnotation, origin: fitz.Point) -> None:
    # origin is the top-left of the first line; MuPDF positions by baseline
    baseline = fitz.Point(origin.x, origin.y + annotation.font_size)
    font_name, _ = _resolve_font(page, annotation.text, get_settings().annotation_font)
    page.insert_text(
        baseline,
        annotation.text,
        fontsize=annotation.font_size,
        fontname=font_name,
        color=annotation.color,
        overlay=True,
    )


def _draw_highlight(page: Any, annotation: HighlightAnnotation, origin: fitz.Point) -> None:
    rect = fitz.Rect(origin.x, origin.y, origin.x + annotation.width, origin.y + annotation.height)
    page.draw_rect(
        rect,
        color=None,
        fill=annotation.color,
        width=0,
        fill_opacity=get_settings().highlight_opacity,
        overlay=True,
    )


def _draw_freehand(page: Any, annotation: DrawAnnotation, origin: fitz.Point) -> None:
    points = [fitz.Point(origin.x + dx, origin.y + dy) for dx, dy in annotation.points]
    page.draw_polyline(
        points,
        color=annotation.color,
        width=annotation.stroke_width,
        lineCap=1,
        lineJoin=1,
        overlay=True,
    )


def _draw_rectangle(page: Any, annotation: RectangleAnnotation, origin: fitz.Point) -> None:
    rect = fitz.Rect(origin.x, origin.y, origin.x + annotation.width, origin.y + annotation.height)
    page.draw_rect(rect, color=annotation.color, width=annotation.stroke_width, overlay=True)


def _draw_circle(page: Any, annotation: CircleAnnotation, origin: fitz.Point) -> None:
    page.draw_circle(
        origin,
        annotation.radius,
        color=annotation.color,
        width=annotation.stroke_width,
        overlay=True,
    )


def _draw_arrow(page: Any, annotation: ArrowAnnotation, origin: fitz.Point) -> None:
    tip = fitz.Point(origin.x + annotation.dx, origin.y + annotation.dy)
    page.draw_line(origin, tip, color=annotation.color, width=annotation.stroke_width, overlay=True)

    heading = math.atan2(annotation.dy, annotation.dx)
    head_length = max(ARROW_HEAD_MIN_LENGTH, annotation.stroke_width * 4.0)
    wings = [
        fitz.Point(
            tip.x - head_length * math.cos(heading + side * ARROW_HEAD_ANGLE),
            tip.y - head_length * math.sin(heading + side * ARROW_HEAD_ANGLE),
        )
        for side in (-1.0, 1.0)
    ]
    page.draw_polyline(
        [tip, wings[0], wings[1]],
        color=annotation.color,
        fill=annotation.color,
        width=annotation.stroke_width,
        closePath=True,
        overlay=True,
    )


def draw_annotation(page: Any, annotation: Any, position: Any) -> None:
    """Draw ``annotation`` into the content stream of a PyMuPDF page, in place."""
    point = Point.coerce(position)
    _check_position(page.rect, point)
    origin = fitz.Point(point.x, point.y)

    if isinstance(annotation, TextAnnotation):
        _draw_text(page, annotation, origin)
    elif isinstance(annotation, HighlightAnnotation):
        _draw_highlight(page, annotation, origin)
    elif isinstance(annotation, DrawAnnotation):
        _draw_freehand(page, annotation, origin)
    elif isinstance(annotation, RectangleAnnotation):
        _draw_rectangle(page, annotation, origin)
    elif isinstance(annotation, CircleAnnotation):
        _draw_circle(page, annotation, origin)
    elif isinstance(annotation, ArrowAnnotation):
        _draw_arrow(page, annotation, origin)
    else:
        raise TypeError(f'unknown annotation type: {type(annotation).__name__}')


def apply_annotation(page: Page, annotation: Any, position: Any) -> Page:
    """Return an annotated copy of ``page`` in a new staging arena.

    The caller owns the returned arena: append the page somewhere and close it
    with ``release_pages``.
    """
    staging = fitz.open()
    try:
        staging.insert_pdf(page.arena, from_page=page.index, to_page=page.index)
        draw_annotation(staging.load_page(0), annotation, position)
    except Exception:
        staging.close()
        raise
    return Page(staging, 0)


def draw_watermark(page: Any, text: str, style: WatermarkStyle | None = None) -> None:
    """Stamp ``text`` across the page centre, rotated about the centre point."""
    label = str(text or '').strip()
    if not label:
        raise InvalidAnnotation('watermark text must not be empty')
    style = style or WatermarkStyle.from_settings()

    rect = page.rect
    center = fitz.Point(rect.x0 + rect.width / 2.0, rect.y0 + rect.height / 2.0)
    font_name, font = _resolve_font(page, label, style.font_name)
    text_width = _measure_text_width(label, font_name=font_name, font_size=style.font_size, font=font)
    # baseline shifted down by roughly half the cap height so the glyphs straddle the centre
    baseline = fitz.Point(center.x - text_width / 2.0, center.y + style.font_size * 0.35)

    page.insert_text(
        baseline,
        label,
        fontsize=style.font_size,
        fontname=font_name,
        color=style.color,
        morph=(center, fitz.Matrix(style.rotation)),
        overlay=True,
    )
