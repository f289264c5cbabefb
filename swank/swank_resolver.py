"""
Resolves identifiers typed in the editor against the live namespaces.

An identifier is either a keyword (``:name``) or a symbol, optionally
qualified with a namespace or a namespace alias (``ns/name``). Resolution
never raises for bad input or unknown names; it answers ``None``.
"""

from __future__ import annotations

import logging
import re
from typing import Optional, Tuple, Union

from swank.swank_datatypes import Binding, Keyword, MalformedInput, Symbol
from swank.swank_runtime import Namespace, RuntimeHost

logger = logging.getLogger(__name__)

NS_SEPARATOR = "/"

_KEYWORD_RE = re.compile(r"^:[^\s()\[\]{}\"',;`]+$")
_SYMBOL_RE = re.compile(r"^[^\s\d()\[\]{}\"',;`:#][^\s()\[\]{}\"',;`]*$")


def symbol_name_parts(text: str, default_ns: Optional[str] = None) -> Tuple[Optional[str], str]:
    """Split ``ns/name`` on the first separator; without one the namespace is `default_ns`."""
    pos = text.find(NS_SEPARATOR)
    if pos == -1:
        return default_ns, text
    return text[:pos], text[pos + 1:]


def read_token(text: str) -> Union[Keyword, Symbol, str]:
    """Read identifier text into a keyword, a symbol, or (for anything else) the stripped text."""
    if not isinstance(text, str) or not text.strip():
        raise MalformedInput(text)
    token = text.strip()
    if _KEYWORD_RE.match(token):
        return Keyword(token)
    if _SYMBOL_RE.match(token):
        ns, name = symbol_name_parts(token)
        return Symbol(ns, name)
    return token


def maybe_alias(host: RuntimeHost, ns_name: str, current_scope: str) -> Optional[Namespace]:
    """A namespace by its own name, else by an alias registered in the current scope."""
    ns = host.find_namespace(ns_name)
    if ns is not None:
        return ns
    current = host.find_namespace(current_scope)
    if current is None:
        return None
    target = current.aliases().get(ns_name)
    if target is None:
        return None
    return host.find_namespace(target)


def resolve_symbol(host: RuntimeHost, sym: Symbol, current_scope: str) -> Optional[Binding]:
    if sym.namespace is None:
        ns = host.find_namespace(current_scope)
        table = ns.mappings() if ns is not None else None
    else:
        ns = maybe_alias(host, sym.namespace, current_scope)
        table = ns.interns() if ns is not None else None
    if table is None or sym.name not in table:
        return None
    return host.binding_metadata_of(ns, sym.name, table[sym.name])


def resolve(host: RuntimeHost, identifier_text: str, current_scope: str) -> Optional[Binding]:
    """The binding `identifier_text` names when read in `current_scope`, or None."""
    try:
        token = read_token(identifier_text)
        if not isinstance(token, Symbol):
            return None
        return resolve_symbol(host, token, current_scope)
    except (MemoryError, RecursionError):
        raise
    except Exception as e:
        logger.debug("could not resolve %r: %s", identifier_text, e)
        return None
