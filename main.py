from __future__ import annotations

import argparse
import json
import logging
from pathlib import Path
from typing import Any

from pagecraft.config import get_settings
from pagecraft.errors import InvalidAnnotation, PageCraftError
from pagecraft.pdf.inspect import extract_page_texts
from pagecraft.storage import numbered_outputs, output_root, read_input, write_bytes_atomic
from pagecraft.toolkit import (
    add_watermark,
    annotate_pdf,
    extract_pages,
    get_pdf_info,
    images_to_pdf,
    merge_pdfs,
    split_pdf,
)
from pagecraft.types import ImageInput, QuickSelector


logger = logging.getLogger('pagecraft.cli')


def _print_json(payload: dict) -> None:
    print(json.dumps(payload, ensure_ascii=False, indent=2))


def _parse_range(value: str) -> tuple[int, int]:
    token = str(value or '').strip()
    start, sep, end = token.partition('-')
    try:
        if not sep:
            page = int(start)
            return page, page
        return int(start), int(end)
    except ValueError as exc:
        raise argparse.ArgumentTypeError(f'invalid page range: {value!r}') from exc


def _parse_selector(value: str) -> QuickSelector:
    try:
        return QuickSelector(str(value or '').strip().lower())
    except ValueError as exc:
        choices = ', '.join(item.value for item in QuickSelector)
        raise argparse.ArgumentTypeError(f'invalid selector {value!r}; choose from {choices}') from exc


def _output_path(args: argparse.Namespace, default_name: str) -> Path:
    if args.output:
        return Path(args.output).expanduser().resolve()
    return output_root() / default_name


def _progress_logger(label: str):
    def _log(percent: float) -> None:
        logger.info('%s: %.0f%%', label, percent)

    return _log


def cmd_merge(args: argparse.Namespace) -> int:
    buffers = [read_input(Path(item)) for item in args.pdf]
    payload = merge_pdfs(buffers, on_progress=_progress_logger('merge'))
    path = write_bytes_atomic(_output_path(args, 'merged.pdf'), payload)
    _print_json({'status': 'ok', 'output': str(path), 'inputs': len(buffers)})
    return 0


def cmd_split(args: argparse.Namespace) -> int:
    source = Path(args.pdf)
    data = read_input(source)
    selections: list[Any] = list(args.selections or [])
    if all(isinstance(item, tuple) for item in selections):
        parts = split_pdf(data, selections, on_progress=_progress_logger('split'))
    else:
        parts = extract_pages(data, selections, on_progress=_progress_logger('extract'))

    directory = Path(args.output_dir).expanduser().resolve() if args.output_dir else None
    paths = numbered_outputs(source.stem, len(parts), directory=directory)
    for path, payload in zip(paths, parts):
        write_bytes_atomic(path, payload)
    _print_json({'status': 'ok', 'outputs': [str(path) for path in paths]})
    return 0


def cmd_images(args: argparse.Namespace) -> int:
    images = []
    for item in args.image:
        path = Path(item)
        images.append(ImageInput(data=read_input(path), mime_type=path.suffix.lstrip('.'), name=path.name))
    payload = images_to_pdf(images, on_progress=_progress_logger('images'))
    path = write_bytes_atomic(_output_path(args, 'images.pdf'), payload)
    _print_json({'status': 'ok', 'output': str(path), 'images': len(images)})
    return 0


def cmd_watermark(args: argparse.Namespace) -> int:
    payload = add_watermark(read_input(Path(args.pdf)), args.text)
    path = write_bytes_atomic(_output_path(args, 'watermarked.pdf'), payload)
    _print_json({'status': 'ok', 'output': str(path)})
    return 0


def cmd_annotate(args: argparse.Namespace) -> int:
    try:
        annotation = json.loads(args.annotation)
    except json.JSONDecodeError as exc:
        raise InvalidAnnotation(f'annotation is not valid JSON: {exc}') from exc
    if not isinstance(annotation, dict):
        raise InvalidAnnotation('annotation must be a JSON object')

    payload = annotate_pdf(read_input(Path(args.pdf)), args.page, annotation, (args.x, args.y))
    path = write_bytes_atomic(_output_path(args, 'annotated.pdf'), payload)
    _print_json({'status': 'ok', 'output': str(path), 'page': args.page})
    return 0


def cmd_info(args: argparse.Namespace) -> int:
    data = read_input(Path(args.pdf))
    info = get_pdf_info(data)
    result: dict[str, Any] = info.model_dump(mode='json')
    if args.text:
        result['pages'] = extract_page_texts(data)
    _print_json(result)
    return 0


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description=get_settings().app_name)
    sub = parser.add_subparsers(dest='command', required=True)

    merge = sub.add_parser('merge', help='Merge PDFs in the given order')
    merge.add_argument('--pdf', action='append', required=True, help='Input PDF (repeat for each file)')
    merge.add_argument('--output', required=False, help='Output PDF path')
    merge.set_defaults(func=cmd_merge)

    split = sub.add_parser('split', help='Write one PDF per page range or quick selection')
    split.add_argument('--pdf', required=True, help='Path to PDF file')
    split.add_argument(
        '--range',
        dest='selections',
        action='append',
        type=_parse_range,
        help='Page range such as 2-4 or 7 (1-based, inclusive)',
    )
    split.add_argument(
        '--select',
        dest='selections',
        action='append',
        type=_parse_selector,
        help='Quick selection: all, first, last, odd, even',
    )
    split.add_argument('--output-dir', required=False, help='Directory for the split parts')
    split.set_defaults(func=cmd_split)

    images = sub.add_parser('images', help='Convert PNG/JPEG images into a PDF, one page per image')
    images.add_argument('--image', action='append', required=True, help='Input image (repeat for each file)')
    images.add_argument('--output', required=False, help='Output PDF path')
    images.set_defaults(func=cmd_images)

    watermark = sub.add_parser('watermark', help='Stamp a diagonal text watermark on every page')
    watermark.add_argument('--pdf', required=True, help='Path to PDF file')
    watermark.add_argument('--text', required=True, help='Watermark text')
    watermark.add_argument('--output', required=False, help='Output PDF path')
    watermark.set_defaults(func=cmd_watermark)

    annotate = sub.add_parser('annotate', help='Draw one annotation on a page')
    annotate.add_argument('--pdf', required=True, help='Path to PDF file')
    annotate.add_argument('--page', type=int, default=1, help='1-based page number')
    annotate.add_argument('--annotation', required=True, help='Annotation as JSON, e.g. {"kind": "text", "text": "Hi"}')
    annotate.add_argument('--x', type=float, required=True, help='X position in points from the left edge')
    annotate.add_argument('--y', type=float, required=True, help='Y position in points from the top edge')
    annotate.add_argument('--output', required=False, help='Output PDF path')
    annotate.set_defaults(func=cmd_annotate)

    info = sub.add_parser('info', help='Show page count and metadata')
    info.add_argument('--pdf', required=True, help='Path to PDF file')
    info.add_argument('--text', action='store_true', help='Include extracted text per page')
    info.set_defaults(func=cmd_info)

    return parser


def main(argv: list[str] | None = None) -> int:
    settings = get_settings()
    logging.basicConfig(
        level=getattr(logging, str(settings.log_level).upper(), logging.INFO),
        format='%(asctime)s - %(name)s - %(levelname)s - %(message)s',
    )

    parser = build_parser()
    args = parser.parse_args(argv)
    try:
        return int(args.func(args))
    except FileNotFoundError as exc:
        _print_json({'status': 'error', 'message': str(exc)})
        return 2
    except PageCraftError as exc:
        logger.error('%s failed: %s', args.command, exc)
        _print_json({'status': 'error', 'error': type(exc).__name__, 'message': str(exc)})
        return 2


if __name__ == '__main__':
    raise SystemExit(main())
