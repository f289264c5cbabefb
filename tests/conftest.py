import textwrap
import types

import pytest

from swank.swank_runtime import PythonRuntime


def make_module(modules, name, source, filename):
    """Create a module whose functions record `filename` as their source file."""
    mod = types.ModuleType(name)
    mod.__file__ = filename
    exec(compile(textwrap.dedent(source).lstrip("\n"), filename, "exec"), mod.__dict__)
    modules[name] = mod
    return mod


@pytest.fixture
def modules():
    """An isolated module table standing in for sys.modules."""
    table = {}
    util = make_module(table, "app.util", '''
        def helper(x, y=2):
            """Adds y to x."""
            return x + y

        _hidden = 1
    ''', "app/util.py")
    core = make_module(table, "app.core", '''
        def foo(a):
            """Foo doc."""
            return a

        def foobar(a, b):
            return a + b

        baz = 3
    ''', "app/core.py")
    core.u = util
    return table


@pytest.fixture
def host(modules):
    return PythonRuntime(modules=modules, path=[])
