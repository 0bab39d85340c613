import os
from typing import Iterable, List

import aiofiles.os

from .errors import ScanError
from .models import LinkRule

BYTES_PER_MB = 1024000


async def list_files(root: str) -> List[str]:
    """Return every file below root, depth-first, as absolute paths."""
    root = os.path.abspath(root)
    out: List[str] = []
    seen = set()
    stack = [root]
    while stack:
        directory = stack.pop()
        real = os.path.realpath(directory)
        if real in seen:
            continue
        seen.add(real)

        try:
            entries = await aiofiles.os.scandir(directory)
            with entries:
                subdirs = []
                for entry in entries:
                    if entry.is_dir():
                        subdirs.append(entry.path)
                    else:
                        out.append(entry.path)
        except OSError as e:
            raise ScanError(directory, e.strerror or str(e)) from e

        # reversed so the first listed subdirectory is walked first
        stack.extend(reversed(subdirs))
    return out


def file_extension(path: str) -> str:
    return os.path.splitext(path)[1].lstrip(".")


def extension_listed(extensions: Iterable[str], ext: str) -> bool:
    # Substring match: "mkv" is listed by an entry ".mkv" or "mkv,mp4".
    ext = ext.lower()
    return any(ext in item.lower() for item in extensions)


async def is_allowed_file(path: str, rule: LinkRule) -> bool:
    ext = file_extension(path)
    if not ext:
        return False

    sizes = rule.allowed_size
    if sizes:
        st = await aiofiles.os.stat(path)
        size_mb = st.st_size // BYTES_PER_MB
        if len(sizes) == 1 and size_mb < sizes[0]:
            return False
        if len(sizes) == 2 and size_mb > sizes[1]:
            return False

    allowed = True
    if rule.allowed_extensions:
        allowed = extension_listed(rule.allowed_extensions, ext)

    if rule.ignored_extensions and extension_listed(rule.ignored_extensions, ext):
        allowed = False

    return allowed
