from __future__ import annotations

import os
import stat
from pathlib import Path


def ensure_directory(path: Path) -> None:
    path.mkdir(parents=True, exist_ok=True)


def write_bytes_atomic(dst: Path, data: bytes) -> None:
    ensure_directory(dst.parent)
    temp_path = dst.parent / f".{dst.name}.tmp"
    try:
        temp_path.write_bytes(data)
        os.replace(temp_path, dst)
    except OSError:
        temp_path.unlink(missing_ok=True)
        raise


def read_text_lossless(path: Path) -> str:
    # surrogateescape keeps undecodable bytes so that writing back is byte exact.
    return path.read_bytes().decode("utf-8", errors="surrogateescape")


def write_text_lossless(path: Path, text: str) -> None:
    path.write_bytes(text.encode("utf-8", errors="surrogateescape"))


def get_mtime_ns(path: Path) -> int:
    return path.stat().st_mtime_ns


def set_mtime_ns(path: Path, mtime_ns: int) -> None:
    os.utime(path, ns=(mtime_ns, mtime_ns))


def copy_permissions(dst: Path, reference: Path) -> None:
    mode = stat.S_IMODE(reference.stat().st_mode)
    dst.chmod(mode)


def remove_if_exists(path: Path) -> bool:
    try:
        path.unlink()
    except FileNotFoundError:
        return False
    return True
