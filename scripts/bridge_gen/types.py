"""
Type naming module

Canonical names for C++ types: a namespace path plus a bare name.
TypeName is the key space of the binding item graph.
"""

import re
from dataclasses import dataclass
from typing import Iterable, Iterator, Optional


@dataclass(frozen=True)
class Namespace:
    """Ordered C++ namespace path, e.g. ('a', 'b') for a::b"""
    segments: tuple[str, ...] = ()

    @classmethod
    def root(cls) -> 'Namespace':
        return cls()

    @classmethod
    def from_cpp(cls, text: str) -> 'Namespace':
        """Parse 'a::b' (leading '::' allowed)"""
        text = text.strip()
        if text.startswith('::'):
            text = text[2:]
        if not text:
            return cls()
        return cls(tuple(text.split('::')))

    def child(self, segment: str) -> 'Namespace':
        return Namespace(self.segments + (segment,))

    def parent(self) -> Optional['Namespace']:
        if not self.segments:
            return None
        return Namespace(self.segments[:-1])

    def scopes(self) -> Iterator['Namespace']:
        """This namespace and every enclosing one, innermost first"""
        ns: Optional[Namespace] = self
        while ns is not None:
            yield ns
            ns = ns.parent()

    @property
    def is_root(self) -> bool:
        return not self.segments

    @property
    def depth(self) -> int:
        return len(self.segments)

    def to_cpp(self) -> str:
        return '::'.join(self.segments)

    def __iter__(self):
        return iter(self.segments)

    def __str__(self):
        return self.to_cpp()


@dataclass(frozen=True)
class TypeName:
    """Namespace-qualified type name. Equal iff namespace and name are equal."""
    ns: Namespace
    name: str

    @classmethod
    def from_cpp(cls, text: str) -> 'TypeName':
        """Parse 'a::b::Name' into TypeName(Namespace(('a', 'b')), 'Name')"""
        text = text.strip()
        if text.startswith('::'):
            text = text[2:]
        *segments, name = text.split('::')
        return cls(Namespace(tuple(segments)), name)

    def to_cpp_name(self) -> str:
        """a::b::Name"""
        return '::'.join(self.ns.segments + (self.name,))

    def qualified(self) -> str:
        """::a::b::Name (usable from global scope)"""
        return '::' + self.to_cpp_name()

    def to_c_name(self) -> str:
        """Flattened C identifier: a_b_Name"""
        return '_'.join(self.ns.segments + (self.name,))

    def __str__(self):
        return self.to_cpp_name()


# Words that can appear in a type spelling but never name a declared type
CXX_TYPE_KEYWORDS = {
    'const', 'volatile', 'struct', 'class', 'enum', 'union', 'typename',
    'void', 'bool', 'char', 'wchar_t', 'char16_t', 'char32_t',
    'short', 'int', 'long', 'signed', 'unsigned', 'float', 'double',
    'int8_t', 'uint8_t', 'int16_t', 'uint16_t',
    'int32_t', 'uint32_t', 'int64_t', 'uint64_t',
    'size_t', 'ptrdiff_t', 'intptr_t', 'uintptr_t',
}

_IDENT_RE = re.compile(r'(?:::)?[A-Za-z_]\w*(?:::[A-Za-z_]\w*)*')


def iter_type_identifiers(type_str: str) -> Iterator[str]:
    """Yield every (possibly qualified) identifier in a type spelling

    Examples:
        "const ns::Point &" -> "ns::Point"
        "std::vector<Item> *" -> "std::vector", "Item"
    """
    for m in _IDENT_RE.finditer(type_str):
        if m.group(0) not in CXX_TYPE_KEYWORDS:
            yield m.group(0)


def resolve_type_name(spelling: str, ns: Namespace,
                      known: 'set[TypeName]') -> Optional[TypeName]:
    """Resolve a spelled name as seen from namespace `ns`

    Lookup goes from the innermost namespace outward to the root,
    the way unqualified C++ name lookup does. Returns None if the
    name does not refer to any known type.
    """
    if spelling.startswith('::'):
        candidate = TypeName.from_cpp(spelling)
        return candidate if candidate in known else None
    *prefix, name = spelling.split('::')
    for scope in ns.scopes():
        candidate = TypeName(Namespace(scope.segments + tuple(prefix)), name)
        if candidate in known:
            return candidate
    return None


def qualify_type(type_str: str, ns: Namespace,
                 known: 'set[TypeName]') -> tuple[str, set[TypeName]]:
    """Rewrite known type names to fully qualified spellings

    Returns the rewritten spelling and the set of TypeNames it refers
    to. Unknown names (std types, primitives) are left as spelled.
    """
    deps: set[TypeName] = set()

    def repl(m: 're.Match') -> str:
        spelling = m.group(0)
        if spelling in CXX_TYPE_KEYWORDS:
            return spelling
        tn = resolve_type_name(spelling, ns, known)
        if tn is None:
            return spelling
        deps.add(tn)
        return tn.qualified()

    return _IDENT_RE.sub(repl, type_str), deps


def collect_type_names(type_strs: Iterable[str], ns: Namespace,
                       known: 'set[TypeName]') -> set[TypeName]:
    """Union of the TypeNames referenced by several type spellings"""
    deps: set[TypeName] = set()
    for type_str in type_strs:
        deps |= qualify_type(type_str, ns, known)[1]
    return deps
