
"""
Defines the core data types for the swank command layer.

This module provides the request-scoped value objects (bindings, search
roots, locations, diagnostics, compilation units), the tagged token shapes
produced when an identifier is read, the session context the dispatcher owns,
and the exception taxonomy shared by every component.
"""

from dataclasses import dataclass, field
from typing import Any, List, Optional, Tuple, Union


# =================================================================
# Exceptions
# =================================================================

class SwankError(Exception):
    """Base class for errors raised by the command layer."""
    pass


class MalformedInput(SwankError, ValueError):
    """Identifier text that cannot be read as a token."""
    def __init__(self, text: str):
        super().__init__(f"Malformed identifier: {text!r}")
        self.text = text


class UnknownOperation(SwankError, KeyError):
    """The dispatcher was asked for an operation that is not registered."""
    def __init__(self, name: str):
        super().__init__(name)
        self.name = name

    def __str__(self) -> str:
        return f"Unknown operation: {self.name}"


class DebugQuit(SwankError):
    """Unwinds the (stubbed) debugger back to the top level."""
    pass


class CompilerError(Exception):
    """A failure while loading a source file, carrying the offending position.

    The text form is ``<file>:<line>: <cause>`` so that the diagnostic
    translator can recover the position from the description alone. The
    original failure is attached as ``__cause__``.
    """
    def __init__(self, file: str, line: Optional[int], message: str):
        self.file = file
        self.line = line
        self.detail = message
        where = f"{file}:{line}" if line is not None else file
        super().__init__(f"{where}: {message}")


# =================================================================
# Wire Keywords and Token Shapes
# =================================================================

class Keyword(str):
    """A protocol keyword such as ``:location``. Compares equal to its text."""
    def __new__(cls, name: str):
        if not name.startswith(":"):
            name = ":" + name
        return super().__new__(cls, name)

    @property
    def name(self) -> str:
        return self[1:]

    def __repr__(self) -> str:
        return f"Keyword({str(self)!r})"


@dataclass(frozen=True)
class Symbol:
    """A symbol token, optionally qualified with a namespace (``ns/name``)."""
    namespace: Optional[str]
    name: str

    def __str__(self) -> str:
        if self.namespace is None:
            return self.name
        return f"{self.namespace}/{self.name}"


# =================================================================
# Bindings and Search Roots
# =================================================================

@dataclass(frozen=True)
class Binding:
    """A snapshot of a resolved name and the metadata recorded at definition time."""
    name: str
    namespace: str
    file: Optional[str] = None
    line: Optional[int] = None
    arglists: Tuple[str, ...] = ()
    doc: Optional[str] = None


@dataclass(frozen=True)
class SearchRoot:
    """A directory or archive consulted, in order, when locating source files."""
    path: str
    source: str = "loader"


# =================================================================
# Locations
# =================================================================

@dataclass(frozen=True)
class FileLocation:
    """A plain file on disk, with an optional line."""
    file: str
    line: Optional[int] = None

    def buffer_spec(self):
        return (Keyword("file"), self.file)

    def to_wire(self):
        return (Keyword("location"), self.buffer_spec(), (Keyword("line"), self.line), None)


@dataclass(frozen=True)
class ZipLocation:
    """An entry inside an archive container."""
    archive: str
    entry: str

    def buffer_spec(self):
        return (Keyword("zip"), self.archive, self.entry)

    def to_wire(self):
        return (Keyword("location"), self.buffer_spec(), (Keyword("line"), None), None)


@dataclass(frozen=True)
class LocationNotFound:
    """Explicit marker for a location that could not be determined."""
    reason: str

    def to_wire(self):
        return (Keyword("error"), self.reason)


Location = Union[FileLocation, ZipLocation, LocationNotFound]

NO_ERROR_LOCATION = LocationNotFound("No error location available")
SOURCE_NOT_FOUND = LocationNotFound("Source definition not found.")


# =================================================================
# Diagnostics
# =================================================================

@dataclass(frozen=True)
class DiagnosticRecord:
    """One failure of a cause chain, as shown to the editor."""
    message: str
    location: Union[FileLocation, LocationNotFound]
    short_message: str
    severity: str = "error"
    references: Tuple[Any, ...] = ()

    def to_wire(self):
        return (
            Keyword("message"), self.message,
            Keyword("severity"), Keyword(self.severity),
            Keyword("location"), self.location.to_wire(),
            Keyword("references"), list(self.references) or None,
            Keyword("short-message"), self.short_message,
        )


@dataclass
class CompilationUnit:
    """Notes, per-unit results and per-unit durations for one load attempt."""
    diagnostics: List[DiagnosticRecord] = field(default_factory=list)
    results: List[Any] = field(default_factory=list)
    durations: List[float] = field(default_factory=list)

    @property
    def succeeded(self) -> bool:
        return not self.diagnostics

    def to_wire(self):
        return (
            Keyword("swank-compilation-unit"),
            [d.to_wire() for d in self.diagnostics] or None,
            list(self.results),
            list(self.durations),
        )


# =================================================================
# Session Context
# =================================================================

@dataclass
class SessionContext:
    """Ambient request context. The dispatcher writes it; the core only reads it."""
    current_namespace: str = "__main__"
    current_failure: Optional[BaseException] = None
    working_directory: Optional[str] = None
