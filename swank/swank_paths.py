from __future__ import annotations

import logging
import os
import sysconfig
from dataclasses import dataclass, field
from typing import Callable, Iterable, List, Optional

from swank.swank_datatypes import SearchRoot

logger = logging.getLogger(__name__)


def _split_path_prop(value: Optional[str]) -> List[str]:
    """Entries of a path-separator list; an absent value has none."""
    if not value:
        return []
    return [p for p in value.split(os.pathsep) if p]


def default_boot_class_path() -> str:
    """The interpreter's own library directories, in path-list form."""
    paths = sysconfig.get_paths()
    seen: List[str] = []
    for key in ("stdlib", "platstdlib"):
        p = paths.get(key)
        if p and p not in seen:
            seen.append(p)
    return os.pathsep.join(seen)


@dataclass
class SearchPathSources:
    """Where search roots come from, in priority order."""
    working_directory: Optional[str] = None
    class_path: Optional[str] = None
    boot_class_path: Optional[str] = None
    loader_roots: Callable[[], Iterable[str]] = field(default=lambda: ())

    @classmethod
    def from_environment(cls, context, config, host) -> "SearchPathSources":
        """Sources for a live session: context/config/cwd, env, stdlib, loader."""
        working = context.working_directory or config.working_directory or os.getcwd()
        boot = config.boot_class_path
        if boot is None:
            boot = default_boot_class_path()
        return cls(
            working_directory=working,
            class_path=os.environ.get(config.class_path_env),
            boot_class_path=boot,
            loader_roots=host.loader_roots,
        )


def list_search_roots(sources: SearchPathSources) -> List[SearchRoot]:
    roots: List[SearchRoot] = []
    roots.extend(SearchRoot(p, "working-directory") for p in _split_path_prop(sources.working_directory))
    roots.extend(SearchRoot(p, "class-path") for p in _split_path_prop(sources.class_path))
    roots.extend(SearchRoot(p, "boot-path") for p in _split_path_prop(sources.boot_class_path))
    roots.extend(SearchRoot(p, "loader") for p in (sources.loader_roots() or ()) if p)
    logger.debug("search roots: %s", [r.path for r in roots])
    return roots
