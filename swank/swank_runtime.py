# swank_runtime.py

"""
The live runtime the command layer drives.

`RuntimeHost` is the interface the command layer consumes: namespace lookup,
binding metadata, the reader, evaluation, one-step macro expansion, file
loading and printing. `PythonRuntime` implements it over the running
interpreter: modules are namespaces, module globals are bindings and
module-valued globals are the namespace-local aliases.
"""

from __future__ import annotations

import ast
import builtins
import inspect
import logging
import os
import sys
import types
from abc import ABC, abstractmethod
from pathlib import Path
from typing import Any, Dict, Iterator, List, MutableMapping, Optional, Sequence

from swank.swank_datatypes import Binding, CompilerError
from swank.swank_diagnostics import FATAL_ERRORS, describe_exception

logger = logging.getLogger(__name__)


class _EndOfInput:
    """Returned by `parse_next` once the reader is exhausted."""
    def __repr__(self):
        return "<end of input>"


EOF = _EndOfInput()


# ===================================================================
# 1. Interfaces
# ===================================================================

class Namespace(ABC):
    """A named container of bindings plus a local alias table."""

    @property
    @abstractmethod
    def name(self) -> str: raise NotImplementedError

    @abstractmethod
    def interns(self) -> Dict[str, Any]:
        """The namespace's own table (public and private)."""
        raise NotImplementedError

    @abstractmethod
    def publics(self) -> Dict[str, Any]:
        """The exported subset of `interns`."""
        raise NotImplementedError

    @abstractmethod
    def mappings(self) -> Dict[str, Any]:
        """Everything visible from inside the namespace."""
        raise NotImplementedError

    @abstractmethod
    def aliases(self) -> Dict[str, str]:
        """Alias -> canonical namespace name."""
        raise NotImplementedError


class RuntimeHost(ABC):
    """The read/eval/metadata primitives the command layer relies on."""

    @abstractmethod
    def all_namespaces(self) -> List[str]: raise NotImplementedError
    @abstractmethod
    def find_namespace(self, name: str) -> Optional[Namespace]: raise NotImplementedError
    @abstractmethod
    def binding_metadata_of(self, namespace: Namespace, name: str, value: Any) -> Binding: raise NotImplementedError
    @abstractmethod
    def reader(self, text: str, filename: str = "<swank>") -> Any: raise NotImplementedError
    @abstractmethod
    def parse_next(self, reader: Any) -> Any: raise NotImplementedError
    @abstractmethod
    def evaluate(self, form: Any, namespace: str) -> Any: raise NotImplementedError
    @abstractmethod
    def macroexpand_1(self, form: Any, namespace: str) -> Any: raise NotImplementedError
    @abstractmethod
    def load_file(self, path: str) -> Any: raise NotImplementedError
    @abstractmethod
    def pr_str(self, value: Any) -> str: raise NotImplementedError
    @abstractmethod
    def pr_form(self, form: Any) -> str: raise NotImplementedError
    @abstractmethod
    def loader_roots(self) -> List[str]: raise NotImplementedError

    def read_from_string(self, text: str) -> Any:
        form = self.parse_next(self.reader(text))
        if form is EOF:
            raise SyntaxError("unexpected end of input")
        return form

    def macroexpand(self, form: Any, namespace: str) -> Any:
        """Expand the top-level form until it no longer changes."""
        while True:
            expanded = self.macroexpand_1(form, namespace)
            if expanded is form:
                return form
            form = expanded


# ===================================================================
# 2. Python implementation
# ===================================================================

def _is_definition(value: Any) -> bool:
    return inspect.isfunction(value) or inspect.isclass(value) or inspect.isbuiltin(value)


class ModuleNamespace(Namespace):
    """A live view over a module. Every call reads the module's current table."""

    def __init__(self, module: types.ModuleType):
        self.module = module

    @property
    def name(self) -> str:
        return self.module.__name__

    def interns(self) -> Dict[str, Any]:
        return dict(vars(self.module))

    def publics(self) -> Dict[str, Any]:
        table = vars(self.module)
        exported = table.get("__all__")
        if exported is not None:
            return {n: table[n] for n in exported if isinstance(n, str) and n in table}
        out = {}
        for n, v in table.items():
            if n.startswith("_") or inspect.ismodule(v):
                continue
            # Functions and classes imported from elsewhere are not exports
            if _is_definition(v) and getattr(v, "__module__", self.name) != self.name:
                continue
            out[n] = v
        return out

    def mappings(self) -> Dict[str, Any]:
        visible = dict(vars(builtins))
        visible.update(vars(self.module))
        return visible

    def aliases(self) -> Dict[str, str]:
        return {n: v.__name__ for n, v in vars(self.module).items() if inspect.ismodule(v)}

    def __repr__(self) -> str:
        return f"<ModuleNamespace {self.name}>"


class FormReader:
    """Reads top-level statements from source text, one per call."""

    def __init__(self, text: str, filename: str = "<swank>"):
        self.filename = filename
        self.tree = ast.parse(text, filename=filename)
        self._forms: Iterator[ast.stmt] = iter(self.tree.body)

    def next_form(self):
        return next(self._forms, EOF)

    def __iter__(self):
        return iter(self._forms)


class PythonRuntime(RuntimeHost):
    """Drives the running interpreter (or an isolated module table in tests)."""

    def __init__(self, modules: Optional[MutableMapping[str, Any]] = None,
                 path: Optional[Sequence[str]] = None):
        self.modules = sys.modules if modules is None else modules
        self._path = path

    # --- Namespaces ---
    def all_namespaces(self) -> List[str]:
        return [n for n, m in list(self.modules.items()) if isinstance(m, types.ModuleType)]

    def find_namespace(self, name: str) -> Optional[ModuleNamespace]:
        module = self.modules.get(name)
        if isinstance(module, types.ModuleType):
            return ModuleNamespace(module)
        return None

    def _namespace_module(self, name: str) -> types.ModuleType:
        """Return the module for `name`, creating and registering it when missing."""
        module = self.modules.get(name)
        if not isinstance(module, types.ModuleType):
            module = types.ModuleType(name)
            self.modules[name] = module
            logger.debug("created namespace %s", name)
        return module

    # --- Metadata ---
    def binding_metadata_of(self, namespace: Namespace, name: str, value: Any) -> Binding:
        target = value
        if callable(value):
            try:
                target = inspect.unwrap(value)
            except ValueError:
                target = value
        declaring = namespace.name
        if _is_definition(target) or inspect.ismethod(target):
            declaring = getattr(target, "__module__", None) or declaring
        file, line = self._source_position(target, declaring)
        arglists: tuple = ()
        if callable(target) and not inspect.ismodule(target):
            try:
                arglists = (str(inspect.signature(target)),)
            except (TypeError, ValueError):
                arglists = ()
        doc = None
        if _is_definition(target) or inspect.ismethod(target) or inspect.ismodule(target):
            doc = inspect.getdoc(target)
        return Binding(
            name=name,
            namespace=declaring,
            file=file,
            line=line,
            arglists=arglists,
            doc=doc,
        )

    def _source_position(self, target: Any, declaring: str):
        if inspect.ismethod(target):
            target = target.__func__
        code = getattr(target, "__code__", None)
        module = self.modules.get(declaring)
        if isinstance(code, types.CodeType):
            return self._recorded_file(code.co_filename, module), code.co_firstlineno
        if inspect.ismodule(target):
            return self._recorded_file(getattr(target, "__file__", None), target), None
        filename = getattr(module, "__file__", None)
        line = getattr(target, "__firstlineno__", None) if inspect.isclass(target) else None
        return self._recorded_file(filename, module), line

    @staticmethod
    def _recorded_file(filename: Optional[str], module: Any) -> Optional[str]:
        """Files imported from an archive are recorded relative to the archive."""
        if not filename:
            return None
        archive = getattr(getattr(module, "__loader__", None), "archive", None)
        if isinstance(archive, str) and filename.startswith(archive + os.sep):
            return filename[len(archive) + 1:].replace(os.sep, "/")
        return filename

    # --- Reader / evaluator ---
    def reader(self, text: str, filename: str = "<swank>") -> FormReader:
        return FormReader(text, filename)

    def parse_next(self, reader: FormReader):
        return reader.next_form()

    def evaluate(self, form: ast.stmt, namespace: str, filename: str = "<swank>") -> Any:
        scope = self._namespace_module(namespace).__dict__
        if isinstance(form, ast.Expr):
            code = compile(ast.Expression(body=form.value), filename, "eval")
            return eval(code, scope)
        code = compile(ast.Module(body=[form], type_ignores=[]), filename, "exec")
        exec(code, scope)
        return None

    def macroexpand_1(self, form: Any, namespace: str) -> Any:
        # Python has no macro layer: every form is already fully expanded.
        return form

    def load_file(self, path: str) -> Any:
        """Evaluate every top-level statement of `path` in its own namespace.

        Returns the value of the last statement. Failures are re-raised as
        `CompilerError` (with the original failure as its cause) positioned
        at the innermost line of `path` that was executing.
        """
        source = Path(path).read_text(encoding="utf-8")
        name = self._module_name_for(path)
        module = self._namespace_module(name)
        module.__file__ = path
        logger.debug("loading %s into %s", path, name)
        value = None
        try:
            for form in self.reader(source, path):
                value = self.evaluate(form, name, filename=path)
        except FATAL_ERRORS:
            raise
        except BaseException as e:
            raise CompilerError(path, _failure_line(e, path), describe_exception(e)) from e
        return value

    def _module_name_for(self, path: str) -> str:
        p = Path(path).resolve()
        for root in self.loader_roots():
            try:
                rel = p.relative_to(Path(root or ".").resolve())
            except (ValueError, OSError):
                continue
            parts = list(rel.with_suffix("").parts)
            if parts and parts[-1] == "__init__":
                parts.pop()
            if parts:
                return ".".join(parts)
        return p.stem

    # --- Printing ---
    def pr_str(self, value: Any) -> str:
        return repr(value)

    def pr_form(self, form: Any) -> str:
        if isinstance(form, ast.AST):
            return ast.unparse(form)
        return repr(form)

    # --- Loader ---
    def loader_roots(self) -> List[str]:
        return list(sys.path if self._path is None else self._path)


def _failure_line(e: BaseException, path: str) -> Optional[int]:
    if isinstance(e, SyntaxError) and e.filename == path:
        return e.lineno
    line = None
    tb = e.__traceback__
    while tb is not None:
        if tb.tb_frame.f_code.co_filename == path:
            line = tb.tb_lineno
        tb = tb.tb_next
    return line
