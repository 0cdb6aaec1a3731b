# artifacts.py
from __future__ import annotations

import os
import shutil
import tempfile
from pathlib import Path

from .model import ArtifactSpec


def wasm_filename(crate: str) -> str:
    """cargo names the wasm output after the crate, with '-' turned into '_'."""
    return crate.replace("-", "_") + ".wasm"


def _resolve(path: str, root: Path) -> Path:
    p = Path(path).expanduser()
    return p if p.is_absolute() else root / p


def copy_artifact(spec: ArtifactSpec, root: str | Path = ".") -> Path:
    """
    Copy one artifact, returning the destination path.

    The source must be a readable file. The destination directory is created
    if needed and the file is replaced atomically, so a re-run overwrites in
    place and never leaves partial or temporary files behind.

    Raises FileNotFoundError / PermissionError / OSError.
    """
    root = Path(root)
    src = _resolve(spec.source, root)
    dst = _resolve(spec.destination, root)

    if not src.is_file():
        raise FileNotFoundError(f"artifact source not found: {src}")
    if not os.access(src, os.R_OK):
        raise PermissionError(f"artifact source not readable: {src}")

    dst.parent.mkdir(parents=True, exist_ok=True)

    fd, tmp_name = tempfile.mkstemp(prefix=f".{dst.name}.", suffix=".tmp", dir=dst.parent)
    tmp = Path(tmp_name)
    try:
        with os.fdopen(fd, "wb") as out, src.open("rb") as inp:
            shutil.copyfileobj(inp, out)
        shutil.copymode(src, tmp)
        os.replace(tmp, dst)
    except BaseException:
        tmp.unlink(missing_ok=True)
        raise

    return dst
