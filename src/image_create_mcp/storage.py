"""
Image Persistence
=================

Writes decoded images to the output directory.

Naming for a request with base filename "pic":
    index 0 -> pic.png, index 1 -> pic-02.png, index 2 -> pic-03.png

Collision policies:
    overwrite  reuse the path
    error      raise FileExistsConflictError
    suffix     probe pic-1.png, pic-2.png, ... until free (default)
"""

import logging
import os
import re
from pathlib import Path
from typing import List, Optional, Sequence

from .errors import FileExistsConflictError, SaveError
from .models import OutputOptions, SavedImage
from .providers.base import ImageFormat, ImagePayload

logger = logging.getLogger("image-create-mcp.storage")

UNSAFE_FILENAME_CHARS = re.compile(r"[^A-Za-z0-9_.\-]")


def sanitize_filename(filename: str) -> str:
    """Reduce a requested name to a safe, non-hidden file name."""
    # both separators, whatever the host OS
    safe = re.split(r"[\\/]", (filename or "").rstrip("\\/"))[-1]
    safe = safe.lstrip(".")
    safe = UNSAFE_FILENAME_CHARS.sub("_", safe)
    return safe or "image"


def extension_for(mime_type: str) -> str:
    return ImageFormat.from_mime_type(mime_type).extension


def resolve_output_dir(directory: str, cwd: Optional[str] = None) -> str:
    """Absolute form of the output directory."""
    path = Path(os.path.expanduser(directory or "."))
    if path.is_absolute():
        return str(path)
    return str((Path(cwd) if cwd else Path.cwd()) / path)


def unique_path(directory: Path, stem: str, ext: str, overwrite: str) -> Path:
    """Final output path for stem+ext under the collision policy."""
    base_path = directory / f"{stem}{ext}"

    if overwrite == "overwrite" or not base_path.exists():
        return base_path

    if overwrite == "error":
        raise FileExistsConflictError(f"File already exists: {base_path}")

    counter = 1
    candidate = directory / f"{stem}-{counter}{ext}"
    while candidate.exists():
        counter += 1
        candidate = directory / f"{stem}-{counter}{ext}"
    return candidate


def save_images(payloads: Sequence[ImagePayload], options: OutputOptions) -> List[SavedImage]:
    """Write payloads in index order and describe what was saved."""
    filename = sanitize_filename(options.filename)
    directory = Path(options.dir)
    try:
        directory.mkdir(parents=True, exist_ok=True)
    except OSError as e:
        raise SaveError(f"Failed to create output directory {directory}: {e}") from e

    saved = []
    for index, payload in enumerate(payloads):
        stem = filename if index == 0 else f"{filename}-{index + 1:02d}"
        path = unique_path(directory, stem, extension_for(payload.mime_type), options.overwrite)
        try:
            path.write_bytes(payload.data)
        except OSError as e:
            raise SaveError(f"Failed to write {path}: {e}") from e
        logger.info(f"Saved image to {path} ({len(payload.data)} bytes)")

        saved.append(SavedImage(
            path=str(path.resolve()),
            mime_type=payload.mime_type,
            size_bytes=len(payload.data),
            index=index,
            source=payload.source,
        ))

    return saved
