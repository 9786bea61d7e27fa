"""
IR (Intermediate Representation) module

Reads and represents the declarations produced by the header parser.
Declarations are kept in source order and tagged with the namespace
they were found in.
"""

from dataclasses import dataclass, field
from typing import Union
import json

from .types import Namespace


@dataclass
class FieldInfo:
    """Struct field information"""
    name: str
    type: str


@dataclass
class StructInfo:
    """Struct/class type information"""
    name: str
    fields: list[FieldInfo]
    ns: Namespace = field(default_factory=Namespace)
    is_trivial: bool = True   # trivially copyable and destructible


@dataclass
class ParamInfo:
    """Function parameter information"""
    name: str
    type: str


@dataclass
class FuncInfo:
    """Function declaration information"""
    name: str
    type: str  # Full function type signature
    params: list[ParamInfo]
    ns: Namespace = field(default_factory=Namespace)

    @property
    def is_signature(self) -> bool:
        """True if `type` has the shape 'ret (args)'"""
        return '(' in self.type and self.type.rstrip().endswith((')', 'const'))

    @property
    def is_variadic(self) -> bool:
        return '...' in self.type

    @property
    def return_type(self) -> str:
        """Extract return type from full type signature"""
        return self.type[:self.type.index('(')].strip()


@dataclass
class MethodInfo(FuncInfo):
    """Member function declaration; `parent` names the enclosing class"""
    parent: str = ''
    is_const: bool = False
    is_static: bool = False


@dataclass
class EnumInfo:
    """Enum type information"""
    name: str
    ns: Namespace = field(default_factory=Namespace)


@dataclass
class TypedefInfo:
    """typedef / using alias"""
    name: str
    type: str
    ns: Namespace = field(default_factory=Namespace)


@dataclass
class UnknownDecl:
    """A declaration shape the IR does not model"""
    kind: str
    name: str
    ns: Namespace = field(default_factory=Namespace)


Decl = Union[StructInfo, FuncInfo, MethodInfo, EnumInfo, TypedefInfo, UnknownDecl]


@dataclass
class IR:
    """Intermediate representation of a set of C++ headers"""
    headers: list[str]
    decls: list[Decl]

    @classmethod
    def load(cls, json_path: str) -> 'IR':
        """Load IR from a JSON file"""
        with open(json_path, 'r', encoding='utf-8') as f:
            data = json.load(f)
        return cls._from_dict(data)

    @classmethod
    def from_dict(cls, data: dict) -> 'IR':
        """Create IR from a dictionary (e.g., from the header parser)"""
        return cls._from_dict(data)

    @classmethod
    def _from_dict(cls, data: dict) -> 'IR':
        """Internal: Parse dict into IR"""
        decls: list[Decl] = []
        cls._parse_decls(data.get('decls', []), Namespace.root(), decls)
        return cls(headers=list(data.get('headers', [])), decls=decls)

    @classmethod
    def _parse_decls(cls, raw_decls: list, ns: Namespace, out: list):
        for decl in raw_decls:
            kind = decl.get('kind', '')

            if kind == 'namespace':
                name = decl.get('name', '')
                # Anonymous namespaces have internal linkage, nothing to bind
                if name:
                    cls._parse_decls(decl.get('decls', []), ns.child(name), out)

            elif kind == 'struct':
                out.append(cls._parse_struct(decl, ns))

            elif kind == 'func':
                out.append(cls._parse_func(decl, ns))

            elif kind == 'method':
                out.append(cls._parse_method(decl, ns))

            elif kind == 'enum':
                out.append(cls._parse_enum(decl, ns))

            elif kind == 'typedef':
                out.append(TypedefInfo(name=decl['name'], type=decl['type'], ns=ns))

            else:
                out.append(UnknownDecl(kind=kind, name=decl.get('name', ''), ns=ns))

    @staticmethod
    def _parse_struct(decl: dict, ns: Namespace) -> StructInfo:
        """Parse struct declaration"""
        fields = []
        for f in decl.get('fields', []):
            if 'name' not in f:
                continue
            fields.append(FieldInfo(name=f['name'], type=f['type']))
        return StructInfo(
            name=decl['name'],
            fields=fields,
            ns=ns,
            is_trivial=decl.get('is_trivial', True),
        )

    @staticmethod
    def _parse_params(decl: dict) -> list[ParamInfo]:
        params = []
        for i, p in enumerate(decl.get('params', [])):
            params.append(ParamInfo(
                name=p.get('name') or f'arg{i}',
                type=p['type'],
            ))
        return params

    @classmethod
    def _parse_func(cls, decl: dict, ns: Namespace) -> FuncInfo:
        """Parse function declaration"""
        return FuncInfo(
            name=decl['name'],
            type=decl.get('type', ''),
            params=cls._parse_params(decl),
            ns=ns,
        )

    @classmethod
    def _parse_method(cls, decl: dict, ns: Namespace) -> MethodInfo:
        """Parse member function declaration"""
        return MethodInfo(
            name=decl['name'],
            type=decl.get('type', ''),
            params=cls._parse_params(decl),
            ns=ns,
            parent=decl.get('parent', ''),
            is_const=decl.get('is_const', False),
            is_static=decl.get('is_static', False),
        )

    @staticmethod
    def _parse_enum(decl: dict, ns: Namespace) -> EnumInfo:
        """Parse enum declaration"""
        return EnumInfo(
            name=decl.get('name', ''),
            ns=ns,
        )
