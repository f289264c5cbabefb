# swank_commands.py

"""
The operations an editor can invoke.

`SwankCommands` binds a runtime host, the configuration and the session
context together and exposes every `@slimefn` method under its kebab-case
protocol name through `dispatch`.
"""

from __future__ import annotations

import inspect
import logging
from typing import Any, Callable, Dict, List, Optional, Tuple

import pystache

from swank import swank_completion
from swank.swank_config import SwankConfig
from swank.swank_datatypes import (
    Binding, CompilationUnit, DebugQuit, Keyword, SearchRoot, SessionContext, Symbol, UnknownOperation,
)
from swank.swank_definitions import find_definitions
from swank.swank_diagnostics import compile_unit
from swank.swank_paths import SearchPathSources, list_search_roots
from swank.swank_resolver import read_token, resolve, resolve_symbol
from swank.swank_runtime import EOF, PythonRuntime, RuntimeHost

logger = logging.getLogger(__name__)


def slimefn(func):
    """A decorator to explicitly mark methods as operations the editor may invoke."""
    func._is_slimefn = True
    return func


def format_arglists(arglists) -> str:
    return " ".join(arglists)


def describe_binding(binding: Binding, template: str) -> str:
    renderer = pystache.Renderer(escape=lambda u: u)
    return renderer.render(template, {
        "namespace": binding.namespace,
        "name": binding.name,
        "arglists": format_arglists(binding.arglists),
        "doc": binding.doc or "",
    })


class SwankCommands:
    """Command layer over a live runtime."""

    def __init__(self, host: Optional[RuntimeHost] = None, config: Optional[SwankConfig] = None,
                 context: Optional[SessionContext] = None):
        self.config = config or SwankConfig()
        self.host = host or PythonRuntime()
        self.context = context or SessionContext(
            current_namespace=self.config.default_namespace,
            working_directory=self.config.working_directory,
        )
        self._operations = self._collect_operations()

    def _collect_operations(self) -> Dict[str, Callable]:
        ops = {}
        for name, member in inspect.getmembers(self):
            if callable(member) and getattr(member, "_is_slimefn", False):
                ops[name.replace("_", "-")] = member
        return ops

    def operations(self) -> List[str]:
        return sorted(self._operations)

    def dispatch(self, name: str, *args: Any) -> Any:
        """Invoke the operation registered as `name` (kebab-case)."""
        op = self._operations.get(name)
        if op is None:
            raise UnknownOperation(name)
        logger.debug("dispatch %s %r", name, args)
        return op(*args)

    @property
    def current_namespace(self) -> str:
        return self.context.current_namespace

    def _scope(self, package: Optional[str]) -> str:
        """`package` when it names a namespace, else the current namespace."""
        if package and self.host.find_namespace(package) is not None:
            return package
        return self.current_namespace

    def search_roots(self) -> List[SearchRoot]:
        return list_search_roots(SearchPathSources.from_environment(self.context, self.config, self.host))

    # ===================================================================
    # Evaluation
    # ===================================================================

    def eval_region(self, text: str) -> Tuple[Any, Any]:
        """Evaluate every form of `text`; return the last value and the last form."""
        reader = self.host.reader(text)
        value, last_form = None, None
        while True:
            form = self.host.parse_next(reader)
            if form is EOF:
                return value, last_form
            value = self.host.evaluate(form, self.current_namespace)
            last_form = form

    @slimefn
    def interactive_eval_region(self, text: str) -> str:
        value, _ = self.eval_region(text)
        return self.host.pr_str(value)

    @slimefn
    def interactive_eval(self, text: str) -> str:
        value, _ = self.eval_region(text)
        return self.host.pr_str(value)

    @slimefn
    def listener_eval(self, text: str):
        value, _ = self.eval_region(text)
        return (Keyword("values"), self.host.pr_str(value))

    # ===================================================================
    # Macro expansion
    # ===================================================================

    def _apply_macro_expander(self, expander, text: str) -> str:
        form = self.host.read_from_string(text)
        return self.host.pr_form(expander(form, self.current_namespace))

    @slimefn
    def swank_macroexpand_1(self, text: str) -> str:
        return self._apply_macro_expander(self.host.macroexpand_1, text)

    @slimefn
    def swank_macroexpand(self, text: str) -> str:
        return self._apply_macro_expander(self.host.macroexpand, text)

    # Not a full walk: expands the top-level form only
    @slimefn
    def swank_macroexpand_all(self, text: str) -> str:
        return self._apply_macro_expander(self.host.macroexpand, text)

    # ===================================================================
    # Compiling / loading
    # ===================================================================

    def compile_file(self, file_name: str) -> CompilationUnit:
        return compile_unit(lambda: self.host.load_file(file_name))

    @slimefn
    def compile_file_for_emacs(self, file_name: str, load: bool = True):
        if not load:
            return None
        return self.compile_file(file_name).to_wire()

    @slimefn
    def load_file(self, file_name: str) -> str:
        return self.host.pr_str(self.host.load_file(file_name))

    # ===================================================================
    # Describe
    # ===================================================================

    def _describe_symbol(self, symbol_name: str) -> str:
        binding = resolve(self.host, symbol_name, self.current_namespace)
        if binding is None:
            return f"Unknown symbol {symbol_name}"
        return describe_binding(binding, self.config.describe_template)

    @slimefn
    def describe_symbol(self, symbol_name: str) -> str:
        return self._describe_symbol(symbol_name)

    @slimefn
    def describe_function(self, symbol_name: str) -> str:
        return self._describe_symbol(symbol_name)

    # Only one namespace kind, so `kind` is ignored
    @slimefn
    def describe_definition_for_emacs(self, name: str, kind: Any = None) -> str:
        return self._describe_symbol(name)

    @slimefn
    def documentation_symbol(self, symbol_name: str, default: Any = None) -> str:
        return self._describe_symbol(symbol_name)

    # ===================================================================
    # Operator messages
    # ===================================================================

    @slimefn
    def operator_arglist(self, name: str, package: Optional[str] = None) -> Optional[str]:
        """Printed parameter lists for the operator `name`, or None."""
        try:
            token = read_token(name)
            match token:
                case Keyword():
                    return "[map]"
                case Symbol():
                    binding = resolve_symbol(self.host, token, self._scope(package))
                    if binding is not None and binding.arglists:
                        return format_arglists(binding.arglists)
                    return None
                case _:
                    return None
        except (MemoryError, RecursionError):
            raise
        except Exception as e:
            logger.debug("operator-arglist %r: %s", name, e)
            return None

    # ===================================================================
    # Completions and namespaces
    # ===================================================================

    @slimefn
    def simple_completions(self, prefix: str, package: Optional[str] = None):
        return swank_completion.simple_completions(self.host, prefix, self._scope(package))

    @slimefn
    def list_all_package_names(self, nicknames: Any = None) -> List[str]:
        return self.host.all_namespaces()

    @slimefn
    def set_package(self, name: str) -> Tuple[str, str]:
        ns_name = self._scope(name)
        self.context.current_namespace = ns_name
        return (ns_name, ns_name)

    # ===================================================================
    # Source locations
    # ===================================================================

    # Changes where definitions are searched first, not where files load from
    @slimefn
    def set_default_directory(self, directory: str, *ignore: Any) -> str:
        self.context.working_directory = directory
        return directory

    @slimefn
    def find_definitions_for_emacs(self, name: str) -> List[Any]:
        return find_definitions(
            self.host, name, self.current_namespace, self.search_roots(),
            label_template=self.config.definition_label_template,
        )

    # ===================================================================
    # Debugger (stubbed)
    # ===================================================================

    @slimefn
    def throw_to_toplevel(self):
        raise DebugQuit("Return debug")

    @slimefn
    def invoke_nth_restart_for_emacs(self, level: int, n: int):
        if n == 1:
            failure = self.context.current_failure
            cause = failure.__cause__ if failure is not None else None
            if cause is not None:
                raise cause
        raise DebugQuit("Nth restart")

    @slimefn
    def buffer_first_change(self, file_name: str):
        return None

    @slimefn
    def backtrace(self, start: int, end: int):
        return None

    @slimefn
    def frame_catch_tags_for_emacs(self, n: int):
        return None

    @slimefn
    def frame_locals_for_emacs(self, n: int):
        return None
