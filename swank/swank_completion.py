from __future__ import annotations

import logging
from functools import reduce
from typing import Iterable, List, Tuple

from swank.swank_resolver import NS_SEPARATOR, maybe_alias, symbol_name_parts
from swank.swank_runtime import RuntimeHost

logger = logging.getLogger(__name__)


def names_with_prefix(prefix: str, names: Iterable[str]) -> List[str]:
    """Non-empty names that start with `prefix` (literal and case-sensitive)."""
    return [s for s in names if s and s.startswith(prefix)]


def largest_common_prefix(a: str, b: str) -> str:
    limit = min(len(a), len(b))
    i = 0
    while i < limit and a[i] == b[i]:
        i += 1
    return a[:i]


def simple_completions(host: RuntimeHost, prefix_text: str, current_scope: str) -> Tuple[List[str], str]:
    """Visible names completing `prefix_text`, plus their longest common prefix.

    A qualified prefix (``ns/par``) completes against the public names of
    that namespace (or alias) and every result is re-qualified. With no
    matches, or on any failure, the original text is echoed back.
    """
    try:
        sym_ns, sym_name = symbol_name_parts(prefix_text)
        if sym_ns is not None:
            ns = maybe_alias(host, sym_ns, current_scope)
            if ns is None:
                return [], prefix_text
            names = ns.publics().keys()
        else:
            ns = host.find_namespace(current_scope)
            if ns is None:
                return [], prefix_text
            names = ns.mappings().keys()
        matches = sorted(names_with_prefix(sym_name, names))
        if not matches:
            return [], prefix_text
        common = reduce(largest_common_prefix, matches)
        if sym_ns is not None:
            qualifier = sym_ns + NS_SEPARATOR
            return [qualifier + m for m in matches], qualifier + common
        return matches, common
    except (MemoryError, RecursionError):
        raise
    except Exception as e:
        logger.debug("completion of %r failed: %s", prefix_text, e)
        return [], prefix_text
