"""
Finds KEP documents under a root directory.

Files come back in lexical walk order: the entries of each directory sorted
by name, descending into a subdirectory at the point where it sorts. That
order decides the order of members in the JSON output.
"""
import os
from pathlib import Path

from kepify.config import CONFIG
from kepify.errors import SourceUnavailable


def ignore(name, ignored=None, extension=None) -> bool:
    """True for files that are not KEPs: wrong extension or a known non-KEP name."""
    if ignored is None:
        ignored = CONFIG['ignored_filenames']
    if extension is None:
        extension = CONFIG['document_extension']
    if not name.endswith(extension):
        return True
    return name in ignored


def _walk(directory: Path):
    with os.scandir(directory) as it:
        entries = sorted(it, key=lambda e: e.name)
    for entry in entries:
        if entry.is_dir(follow_symlinks=False):
            yield from _walk(Path(entry.path))
        else:
            yield Path(entry.path)


def find_markdown_files(root, ignored=None, extension=None) -> list[Path]:
    root = Path(root)
    if not root.exists():
        raise SourceUnavailable(f"directory does not exist: {root}")

    if root.is_dir():
        candidates = _walk(root)
    else:
        candidates = [root]

    try:
        return [p for p in candidates if not ignore(p.name, ignored, extension)]
    except OSError as e:
        raise SourceUnavailable(f"unable to find markdown files: {e}") from e
