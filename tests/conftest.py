from __future__ import annotations

import io

import pymupdf as fitz
import pytest
from PIL import Image
from reportlab.lib.pagesizes import letter
from reportlab.pdfgen import canvas

from pagecraft.config import get_settings


def make_pdf(labels: list[str], *, width: float = 595, height: float = 842) -> bytes:
    """One page per label, each page showing its label near the top-left corner."""
    doc = fitz.open()
    for label in labels:
        page = doc.new_page(width=width, height=height)
        page.insert_text((72, 72), label, fontsize=14)
    data = doc.tobytes()
    doc.close()
    return data


def make_labelled(prefix: str, count: int) -> bytes:
    return make_pdf([f'{prefix}{index}' for index in range(1, count + 1)])


def make_image(width: int, height: int, fmt: str = 'PNG', color=(200, 30, 30)) -> bytes:
    buffer = io.BytesIO()
    Image.new('RGB', (width, height), color).save(buffer, format=fmt)
    return buffer.getvalue()


def page_texts(data: bytes) -> list[str]:
    doc = fitz.open(stream=data, filetype='pdf')
    try:
        return [page.get_text().strip() for page in doc]
    finally:
        doc.close()


@pytest.fixture(autouse=True)
def fresh_settings(monkeypatch, tmp_path):
    monkeypatch.setenv('PAGECRAFT_OUTPUT_DIR', str(tmp_path / 'output'))
    get_settings.cache_clear()
    yield
    get_settings.cache_clear()


@pytest.fixture
def three_page_pdf() -> bytes:
    return make_labelled('P', 3)


@pytest.fixture
def six_page_pdf() -> bytes:
    return make_labelled('P', 6)


@pytest.fixture
def report_pdf() -> bytes:
    buffer = io.BytesIO()
    pdf = canvas.Canvas(buffer, pagesize=letter)
    pdf.setTitle('Quarterly Report')
    pdf.setAuthor('Ada Lovelace')
    pdf.setSubject('Numbers')
    pdf.setCreator('Report Builder')
    for index in range(1, 3):
        pdf.drawString(72, 720, f'Report page {index}')
        pdf.showPage()
    pdf.save()
    return buffer.getvalue()


@pytest.fixture
def png_bytes() -> bytes:
    return make_image(40, 30, 'PNG')


@pytest.fixture
def jpeg_bytes() -> bytes:
    return make_image(64, 48, 'JPEG')
