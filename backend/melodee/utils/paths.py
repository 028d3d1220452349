"""Path manipulation utilities."""
import errno
import os
import shutil
from pathlib import Path
from typing import Optional

# Characters that are unsafe in directory and file names
_UNSAFE_DIR_CHARS = str.maketrans({
    "/": "-", "\\": "-", ":": "-",
    "*": "", "?": "", '"': "", "<": "", ">": "", "|": "",
})
_UNSAFE_FILE_CHARS = str.maketrans({c: "-" for c in '/\\:*?"<>|'})


def clean_directory_name(name: str) -> str:
    """Replace or drop characters that are problematic in directory names."""
    return (name or "").translate(_UNSAFE_DIR_CHARS).strip()


def album_directory(directory_code: str, artist: str, year: Optional[int], album: str) -> Path:
    """Relative album directory: ``CODE/Artist/Year - Album``."""
    return (
        Path(directory_code)
        / clean_directory_name(artist)
        / f"{year or 0} - {clean_directory_name(album)}"
    )


def format_filename(disc_number: int, track_number: int, title: str, extension: str) -> str:
    """Canonical staged filename.

    ``01 - Title.flac`` for single-disc albums, ``2-01 - Title.flac`` when
    the disc number is greater than one.
    """
    clean_title = (title or "").translate(_UNSAFE_FILE_CHARS).strip()
    track = track_number or 0
    if disc_number and disc_number > 1:
        return f"{disc_number}-{track:02d} - {clean_title}{extension}"
    return f"{track:02d} - {clean_title}{extension}"


def unique_path(path: Path) -> Path:
    """Return ``path`` or the first free ``name_N`` sibling."""
    if not path.exists():
        return path
    counter = 1
    while True:
        candidate = path.with_name(f"{path.stem}_{counter}{path.suffix}")
        if not candidate.exists():
            return candidate
        counter += 1


def safe_move_file(src: Path, dst: Path) -> None:
    """Move a file, falling back to copy + fsync + unlink across filesystems.

    Raises:
        FileExistsError: If the destination already exists
        OSError: If the move fails
    """
    src = Path(src)
    dst = Path(dst)
    if dst.exists():
        raise FileExistsError(f"Destination already exists: {dst}")

    dst.parent.mkdir(parents=True, exist_ok=True)

    try:
        os.rename(src, dst)
        return
    except OSError as e:
        # Only a cross-device rename falls through to copy
        if not src.exists():
            raise
        if e.errno != errno.EXDEV:
            raise

    shutil.copy2(src, dst)
    with open(dst, "rb+") as f:
        os.fsync(f.fileno())
    src.unlink()
