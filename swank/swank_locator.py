from __future__ import annotations

import logging
import os
import zipfile
from typing import Optional, Sequence

from swank.swank_datatypes import FileLocation, Location, LocationNotFound, SearchRoot, ZipLocation

logger = logging.getLogger(__name__)


def _open_archive(path: str) -> Optional[zipfile.ZipFile]:
    """Open `path` as a zip archive, or None when it is not one.

    Failing to open is the answer to "is this root an archive?", not an error.
    """
    try:
        return zipfile.ZipFile(path)
    except (MemoryError, RecursionError):
        raise
    except Exception as e:
        logger.debug("%s is not a readable archive: %s", path, e)
        return None


def _has_entry(archive: zipfile.ZipFile, name: str) -> bool:
    try:
        archive.getinfo(name)
    except KeyError:
        return False
    return True


def find_file_in_root(relative_path: str, root: SearchRoot) -> Optional[Location]:
    child = os.path.join(root.path, relative_path)
    if os.path.isfile(child):
        return FileLocation(child)
    archive = _open_archive(root.path)
    if archive is None:
        return None
    with archive:
        if _has_entry(archive, relative_path):
            return ZipLocation(root.path, relative_path)
    return None


def locate(relative_path: str, roots: Sequence[SearchRoot]) -> Location:
    """Find `relative_path` in the first root that has it, as a file or an archive entry."""
    if os.path.isabs(relative_path):
        return FileLocation(relative_path)
    for root in roots:
        found = find_file_in_root(relative_path, root)
        if found is not None:
            logger.debug("found %s in %s root %s", relative_path, root.source, root.path)
            return found
    return LocationNotFound(f"{relative_path} not found in {len(roots)} search root(s)")
