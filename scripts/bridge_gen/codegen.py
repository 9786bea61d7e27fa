"""
Code generation utilities

Provides helpers for generating C++ code.
"""

from contextlib import contextmanager
from typing import Iterator, Optional

GENERATED_BANNER = '/* machine generated, do not edit */'


class CodeGen:
    """Accumulates C++ source lines at a nesting depth"""

    INDENT = '    '

    def __init__(self, banner: bool = False):
        self._out: list[str] = []
        self._depth = 0
        if banner:
            self._out.append(GENERATED_BANNER)

    def line(self, text: str = ''):
        self._out.append(f'{self.INDENT * self._depth}{text}' if text else '')

    def include(self, header: str, system: bool = False):
        self.line(f'#include <{header}>' if system else f'#include "{header}"')

    @contextmanager
    def block(self, opener: str, closer: str = '}') -> Iterator['CodeGen']:
        """Emit `opener`, indent the body, then emit `closer`"""
        self.line(opener)
        self._depth += 1
        try:
            yield self
        finally:
            self._depth -= 1
            self.line(closer)

    def extern_c(self):
        return self.block('extern "C" {')

    def output(self) -> str:
        return '\n'.join(self._out) + '\n'


def is_reference(type_str: str) -> bool:
    """Check if type is an lvalue reference"""
    return type_str.rstrip().endswith('&') and not type_str.rstrip().endswith('&&')


def is_pointer(type_str: str) -> bool:
    """Check if type is a pointer"""
    return type_str.rstrip().endswith('*')


def is_func_ptr(type_str: str) -> bool:
    """Check if type is a function pointer"""
    return '(*)' in type_str


def is_array_type(type_str: str) -> bool:
    return '[' in type_str


def is_template_type(type_str: str) -> bool:
    return '<' in type_str


def strip_const(type_str: str) -> str:
    """Remove top-level const qualifiers

    Examples:
        "const ns::Point" -> "ns::Point"
        "ns::Point const" -> "ns::Point"
    """
    tokens = type_str.split()
    return ' '.join(t for t in tokens if t != 'const')


def strip_reference(type_str: str) -> str:
    """Drop a trailing '&': "const Point &" -> "const Point" """
    return type_str.rstrip()[:-1].rstrip() if is_reference(type_str) else type_str.strip()


def value_type(type_str: str) -> str:
    """Underlying value type of a (const) value or reference

    Examples:
        "const ::ns::Point &" -> "::ns::Point"
        "int" -> "int"
    """
    return strip_const(strip_reference(type_str))


def pointer_to(type_str: str) -> str:
    """Pointer spelling for a (const) value or reference type

    Examples:
        "const ::ns::Point &" -> "const ::ns::Point *"
        "::ns::Point" -> "::ns::Point *"
    """
    return strip_reference(type_str) + ' *'


def join_params(params: list[tuple[str, str]]) -> str:
    """Format (type, name) pairs as a C parameter list"""
    if not params:
        return 'void'
    return ', '.join(f'{t} {n}' if not t.endswith(('*', '&')) else f'{t}{n}'
                     for t, n in params)


def bridge_symbol(c_name: str, prefix: Optional[str] = None) -> str:
    """extern "C" symbol for a flattened name: ns_Point -> bridge_ns_Point"""
    return f'{prefix or BRIDGE_PREFIX}{c_name}'


# Prefix of every extern "C" symbol in the generated bridge
BRIDGE_PREFIX = 'bridge_'
