"""
A printer for wire values: renders command results as s-expression text.
"""
import ast
import collections.abc

from swank.swank_datatypes import Keyword, Symbol


class Printer:
    """Formats command results (nested tuples of keywords, strings and numbers) as s-expressions."""

    def __init__(self):
        self._handlers = self._create_handlers()

    def pformat(self, obj, level=0):
        """Public entry point to format an object."""
        handler = self._get_handler(obj)
        return handler(obj, level)

    def _get_handler(self, obj):
        """Dispatcher to find the correct formatting method."""
        obj_type = type(obj)
        if obj_type in self._handlers:
            return self._handlers[obj_type]
        if isinstance(obj, Keyword): return self._pformat_keyword
        if isinstance(obj, str): return self._pformat_str
        if isinstance(obj, ast.AST): return self._pformat_form
        if hasattr(obj, "to_wire"): return self._pformat_wire
        if isinstance(obj, collections.abc.Mapping): return self._pformat_plist
        if isinstance(obj, (list, tuple)): return self._pformat_list
        # Anything else is shown as its Python repr, quoted
        return lambda o, l: self._pformat_str(repr(o), l)

    def _create_handlers(self):
        return {
            Keyword: self._pformat_keyword,
            Symbol: self._pformat_symbol,
            str: self._pformat_str,
            bool: self._pformat_bool,
            int: self._pformat_primitive,
            float: self._pformat_primitive,
            type(None): self._pformat_none,
            list: self._pformat_list,
            tuple: self._pformat_list,
        }

    def _pformat_primitive(self, obj, level):
        return repr(obj)

    def _pformat_keyword(self, obj, level):
        return str(obj)

    def _pformat_symbol(self, obj, level):
        return str(obj)

    def _pformat_str(self, obj, level):
        escaped = obj.replace("\\", "\\\\").replace('"', '\\"')
        return f'"{escaped}"'

    def _pformat_bool(self, obj, level):
        return 't' if obj else 'nil'

    def _pformat_none(self, obj, level):
        return 'nil'

    def _pformat_form(self, obj, level):
        return self._pformat_str(ast.unparse(obj), level)

    def _pformat_wire(self, obj, level):
        return self.pformat(obj.to_wire(), level)

    def _pformat_plist(self, obj, level):
        items = []
        for k, v in obj.items():
            items.append(Keyword(str(k)))
            items.append(v)
        return self._pformat_list(items, level)

    def _pformat_list(self, obj, level):
        if not obj:
            return 'nil'
        return "(" + " ".join(self.pformat(item, level + 1) for item in obj) + ")"
