from __future__ import annotations

import logging
from typing import Any, List, Sequence

import pystache

from swank.swank_datatypes import Binding, Keyword, LocationNotFound, SearchRoot, SOURCE_NOT_FOUND
from swank.swank_locator import locate
from swank.swank_resolver import resolve
from swank.swank_runtime import RuntimeHost

logger = logging.getLogger(__name__)

_renderer = pystache.Renderer(escape=lambda u: u)


def namespace_to_path(ns_name: str) -> str:
    """``my-app.core`` -> ``my_app/core``"""
    return ns_name.replace("-", "_").replace(".", "/")


def definition_candidates(binding: Binding) -> List[str]:
    """Relative paths to try for a binding's source, most specific first."""
    if not binding.file:
        return []
    return [
        namespace_to_path(binding.namespace) + "/" + binding.file,
        binding.file,
    ]


def find_binding_source(binding: Binding, roots: Sequence[SearchRoot]):
    for candidate in definition_candidates(binding):
        found = locate(candidate, roots)
        if not isinstance(found, LocationNotFound):
            return found
    return SOURCE_NOT_FOUND


def find_definitions(host: RuntimeHost, identifier_text: str, current_scope: str,
                     roots: Sequence[SearchRoot], label_template: str = "(def {{name}})") -> List[Any]:
    """Where `identifier_text` is defined.

    Unresolvable names give ``[]``. A resolved name gives a single entry:
    either ``(label, (:location <buffer> (:line n) nil))`` or
    ``(name, (:error "Source definition not found."))``.
    """
    binding = resolve(host, identifier_text, current_scope)
    if binding is None:
        return []
    found = find_binding_source(binding, roots)
    if isinstance(found, LocationNotFound):
        logger.debug("no source for %s/%s (file %r)", binding.namespace, binding.name, binding.file)
        return [(binding.name, found.to_wire())]
    label = _renderer.render(label_template, {"name": binding.name, "namespace": binding.namespace})
    return [(label, (Keyword("location"), found.buffer_spec(), (Keyword("line"), binding.line), None))]
