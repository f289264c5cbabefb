"""
Turns a failed load into editor diagnostics.

A failure and everything it was caused by become one `DiagnosticRecord`
each, outermost first, with a best-effort source position recovered from the
failure's text.
"""

from __future__ import annotations

import logging
import re
import time
from typing import Any, Callable, Iterator, Optional

from swank.swank_datatypes import (
    CompilationUnit, DiagnosticRecord, FileLocation, LocationNotFound, NO_ERROR_LOCATION,
)

logger = logging.getLogger(__name__)

# "<exception-type>: <file>:<line>:"
COMPILER_EXCEPTION_LOCATION_RE = re.compile(r"^([\w.$]+): ([^:\n]+):(\d+):")

# Never turned into diagnostics
FATAL_ERRORS = (KeyboardInterrupt, MemoryError, RecursionError)


def describe_exception(e: BaseException) -> str:
    """The full textual description of a failure: ``Type: message``."""
    name = type(e).__name__
    text = str(e)
    return f"{name}: {text}" if text else name


def exception_causes(e: BaseException) -> Iterator[BaseException]:
    """Yield `e` and its causes, outermost first.

    Follows ``__cause__``, falling back to ``__context__`` unless the context
    was suppressed. A failure already yielded ends the chain.
    """
    seen = set()
    current: Optional[BaseException] = e
    while current is not None and id(current) not in seen:
        seen.add(id(current))
        yield current
        nxt = current.__cause__
        if nxt is None and not current.__suppress_context__:
            nxt = current.__context__
        current = nxt


def guess_compiler_exception_location(description: str) -> Optional[FileLocation]:
    m = COMPILER_EXCEPTION_LOCATION_RE.match(description)
    if not m:
        return None
    return FileLocation(m.group(2), int(m.group(3)))


# TODO: guess from SyntaxError.filename/lineno as well as from the text
def exception_location(description: str) -> FileLocation | LocationNotFound:
    return guess_compiler_exception_location(description) or NO_ERROR_LOCATION


def exception_to_message(e: BaseException) -> DiagnosticRecord:
    text = describe_exception(e)
    return DiagnosticRecord(
        message=text,
        location=exception_location(text),
        short_message=text,
    )


def compile_unit(load: Callable[[], Any], clock: Callable[[], float] = time.monotonic) -> CompilationUnit:
    """Run `load`, timing it, and report the outcome as a compilation unit.

    On success there are no diagnostics and exactly one result and one
    duration. On failure every slot list has one entry per failure in the
    cause chain; results are all ``None`` and every duration is the single
    elapsed time measured once the failure was caught.
    """
    start = clock()
    try:
        ret = load()
    except FATAL_ERRORS:
        raise
    except BaseException as e:
        delta = clock() - start
        notes = [exception_to_message(c) for c in exception_causes(e)]
        logger.info("load failed with %d diagnostic(s): %s", len(notes), notes[0].short_message)
        return CompilationUnit(
            diagnostics=notes,
            results=[None] * len(notes),
            durations=[delta] * len(notes),
        )
    delta = clock() - start
    return CompilationUnit(diagnostics=[], results=[ret], durations=[delta])
