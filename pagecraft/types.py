from __future__ import annotations

import re
from enum import Enum
from typing import Annotated, Any, Literal, Union

from pydantic import BaseModel, ConfigDict, Field, TypeAdapter, field_validator, model_validator

from .config import get_settings


RGB = tuple[float, float, float]

# Colour swatches offered by the editor toolbar.
PALETTE: dict[str, str] = {
    'red': '#ff0000',
    'blue': '#0000ff',
    'green': '#00ff00',
    'yellow': '#ffff00',
    'purple': '#800080',
    'orange': '#ffa500',
    'black': '#000000',
    'white': '#ffffff',
}


def parse_color(value: Any) -> RGB:
    if isinstance(value, str):
        token = value.strip()
        named = PALETTE.get(token.lower())
        if named is not None:
            token = named
        if not re.fullmatch(r'#?[0-9a-fA-F]{6}', token):
            raise ValueError(f'invalid colour: {value!r}')
        token = token.lstrip('#')
        return (
            int(token[0:2], 16) / 255.0,
            int(token[2:4], 16) / 255.0,
            int(token[4:6], 16) / 255.0,
        )

    if isinstance(value, (list, tuple)) and len(value) == 3:
        if any(isinstance(channel, bool) or not isinstance(channel, (int, float)) for channel in value):
            raise ValueError(f'invalid colour: {value!r}')
        # all-int triples are 0-255; a single float switches the triple to 0-1
        channels = [float(channel) for channel in value]
        if all(isinstance(channel, int) for channel in value):
            channels = [channel / 255.0 for channel in channels]
        if any(channel < 0.0 or channel > 1.0 for channel in channels):
            raise ValueError(f'colour channels out of range: {value!r}')
        return (channels[0], channels[1], channels[2])

    raise ValueError(f'invalid colour: {value!r}')


class QuickSelector(str, Enum):
    all = 'all'
    first = 'first'
    last = 'last'
    odd = 'odd'
    even = 'even'


class PageRange(BaseModel):
    model_config = ConfigDict(frozen=True)

    start: int
    end: int

    @classmethod
    def coerce(cls, value: Any) -> PageRange:
        if isinstance(value, PageRange):
            return value
        if isinstance(value, dict):
            return cls.model_validate(value)
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return cls(start=value[0], end=value[1])
        raise TypeError(f'cannot interpret {value!r} as a page range')

    @property
    def label(self) -> str:
        if self.start == self.end:
            return f'Page {self.start}'
        return f'Pages {self.start}-{self.end}'

    def page_numbers(self) -> list[int]:
        return list(range(self.start, self.end + 1))


class Point(BaseModel):
    model_config = ConfigDict(frozen=True)

    x: float
    y: float

    @classmethod
    def coerce(cls, value: Any) -> Point:
        if isinstance(value, Point):
            return value
        if isinstance(value, dict):
            return cls.model_validate(value)
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return cls(x=value[0], y=value[1])
        raise TypeError(f'cannot interpret {value!r} as a point')


class _AnnotationBase(BaseModel):
    model_config = ConfigDict(frozen=True)

    color: RGB = (1.0, 0.0, 0.0)

    @field_validator('color', mode='before')
    @classmethod
    def _normalize_color(cls, value: Any) -> RGB:
        return parse_color(value)


class _StrokedAnnotation(_AnnotationBase):
    stroke_width: float = Field(default=2.0, ge=1.0, le=10.0)


class TextAnnotation(_AnnotationBase):
    kind: Literal['text'] = 'text'
    text: str = Field(min_length=1)
    font_size: float = Field(default=12.0, ge=8.0, le=72.0)


class HighlightAnnotation(_AnnotationBase):
    kind: Literal['highlight'] = 'highlight'
    color: RGB = (1.0, 1.0, 0.0)
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class DrawAnnotation(_StrokedAnnotation):
    kind: Literal['draw'] = 'draw'
    # offsets from the anchor position
    points: list[tuple[float, float]] = Field(min_length=2)


class RectangleAnnotation(_StrokedAnnotation):
    kind: Literal['rectangle'] = 'rectangle'
    width: float = Field(gt=0)
    height: float = Field(gt=0)


class CircleAnnotation(_StrokedAnnotation):
    kind: Literal['circle'] = 'circle'
    radius: float = Field(gt=0)


class ArrowAnnotation(_StrokedAnnotation):
    kind: Literal['arrow'] = 'arrow'
    dx: float
    dy: float

    @model_validator(mode='after')
    def _non_zero_length(self) -> ArrowAnnotation:
        if self.dx == 0 and self.dy == 0:
            raise ValueError('arrow must have a non-zero length')
        return self


Annotation = Annotated[
    Union[
        TextAnnotation,
        HighlightAnnotation,
        DrawAnnotation,
        RectangleAnnotation,
        CircleAnnotation,
        ArrowAnnotation,
    ],
    Field(discriminator='kind'),
]

_ANNOTATION_ADAPTER: TypeAdapter[Any] = TypeAdapter(Annotation)


def parse_annotation(payload: dict[str, Any]) -> Any:
    return _ANNOTATION_ADAPTER.validate_python(payload)


class ImageInput(BaseModel):
    model_config = ConfigDict(frozen=True)

    data: bytes
    mime_type: str
    name: str | None = None

    @classmethod
    def coerce(cls, value: Any) -> ImageInput:
        if isinstance(value, ImageInput):
            return value
        if isinstance(value, (list, tuple)) and len(value) == 2:
            return cls(data=bytes(value[0]), mime_type=str(value[1]))
        raise TypeError(f'cannot interpret {type(value).__name__} as an image input')


class DocumentMetadata(BaseModel):
    title: str = 'Untitled'
    author: str = 'Unknown'
    subject: str = ''
    creator: str = 'Unknown'

    @classmethod
    def from_raw(cls, raw: dict[str, Any] | None) -> DocumentMetadata:
        raw = raw or {}
        values: dict[str, str] = {}
        for key in ('title', 'author', 'subject', 'creator'):
            token = str(raw.get(key) or '').strip()
            if token:
                values[key] = token
        return cls(**values)


class DocumentInfo(BaseModel):
    page_count: int
    metadata: DocumentMetadata = Field(default_factory=DocumentMetadata)


class WatermarkStyle(BaseModel):
    model_config = ConfigDict(frozen=True)

    font_size: float = Field(default=50.0, gt=0)
    rotation: float = 45.0
    color: RGB = (0.7, 0.7, 0.7)
    font_name: str = 'helv'

    @field_validator('color', mode='before')
    @classmethod
    def _normalize_color(cls, value: Any) -> RGB:
        return parse_color(value)

    @classmethod
    def from_settings(cls) -> WatermarkStyle:
        settings = get_settings()
        gray = settings.watermark_gray
        return cls(
            font_size=settings.watermark_font_size,
            rotation=settings.watermark_rotation,
            color=(gray, gray, gray),
            font_name=settings.watermark_font,
        )
