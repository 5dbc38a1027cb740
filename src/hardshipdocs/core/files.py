from __future__ import annotations

import hashlib
import os
from pathlib import Path


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def write_bytes_atomic(path: Path, data: bytes) -> None:
    ensure_directory(path.parent)
    temp_path = path.parent / f".{path.name}.tmp"
    temp_path.write_bytes(data)
    os.replace(temp_path, path)


def write_text_atomic(path: Path, text: str) -> None:
    write_bytes_atomic(path, text.encode("utf-8"))


def compute_file_digest(path: Path, alg: str = "sha256", chunk_size: int = 1024 * 1024) -> str:
    h = hashlib.new(alg)
    with path.open("rb") as f:
        for chunk in iter(lambda: f.read(chunk_size), b""):
            h.update(chunk)
    return h.hexdigest()


def safe_output_name(raw: str, *, suffix: str = ".pdf", fallback: str = "document") -> str:
    """Reduce a model-chosen filename to a bare name with the given suffix.

    Directory components and leading dots are stripped so the result always
    lands inside the output directory.
    """
    name = Path(raw.replace("\\", "/")).name.strip().lstrip(".")
    if not name:
        name = fallback
    if not name.lower().endswith(suffix):
        name = f"{name}{suffix}"
    return name
