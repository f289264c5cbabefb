from swank.swank_commands import SwankCommands, slimefn
from swank.swank_config import SwankConfig, load_config, configure_logging
from swank.swank_datatypes import (
    Binding, CompilationUnit, DiagnosticRecord, FileLocation, Keyword, LocationNotFound,
    SearchRoot, SessionContext, Symbol, ZipLocation,
)
from swank.swank_printer import Printer
from swank.swank_runtime import PythonRuntime, RuntimeHost

__version__ = "0.1.0"
