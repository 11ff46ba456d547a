from __future__ import annotations

from pathlib import Path

from .config import get_settings
from .errors import CorruptDocument


def output_root() -> Path:
    root = get_settings().output_dir
    root.mkdir(parents=True, exist_ok=True)
    return root


def read_input(path: Path) -> bytes:
    path = Path(path).expanduser().resolve()
    if not path.exists() or not path.is_file():
        raise FileNotFoundError(f'input not found: {path}')
    size = int(path.stat().st_size)
    limit = int(get_settings().max_input_bytes)
    if size > limit:
        raise CorruptDocument(f'{path.name} too large: {size} bytes, max allowed {limit} bytes')
    return path.read_bytes()


def write_bytes_atomic(path: Path, payload: bytes) -> Path:
    path.parent.mkdir(parents=True, exist_ok=True)
    tmp = path.with_suffix(path.suffix + '.tmp')
    tmp.write_bytes(payload)
    tmp.replace(path)
    return path


def numbered_outputs(stem: str, count: int, *, directory: Path | None = None) -> list[Path]:
    """``<stem>_1.pdf`` ... ``<stem>_<count>.pdf`` under ``directory`` (default: output root)."""
    root = directory if directory is not None else output_root()
    return [root / f'{stem}_{index}.pdf' for index in range(1, count + 1)]
