"""Output files: overwrite guard and PEM writers."""

import os
from pathlib import Path
from typing import Union

from certgen.common.errors import ExistingFilesError, OutputError

KEY_FILE_MODE = 0o600

PathLike = Union[str, Path]


def check_files_exist(*files: PathLike) -> None:
    """
    Raise ExistingFilesError listing every file that already exists.
    Stat failures other than "not found" are raised as OutputError.
    """
    existing = []
    for f in files:
        try:
            os.stat(f)
        except FileNotFoundError:
            continue
        except OSError as e:
            raise OutputError(f"cannot stat {f}: {e}") from e
        existing.append(str(f))
    if existing:
        raise ExistingFilesError(existing)


def write_certificate(path: PathLike, pem: bytes) -> None:
    """Create or truncate path with default permissions."""
    try:
        with open(path, "wb") as f:
            f.write(pem)
    except OSError as e:
        raise OutputError(f"cannot write certificate {path}: {e}") from e


def write_private_key(path: PathLike, pem: bytes) -> None:
    """Create or truncate path readable and writable by the owner only."""
    try:
        fd = os.open(path, os.O_WRONLY | os.O_CREAT | os.O_TRUNC, KEY_FILE_MODE)
        with os.fdopen(fd, "wb") as f:
            # A pre-existing file keeps its old mode through O_CREAT
            os.chmod(path, KEY_FILE_MODE)
            f.write(pem)
    except OSError as e:
        raise OutputError(f"cannot write private key {path}: {e}") from e
