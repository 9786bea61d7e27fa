"""
bridge_gen - C++ bridge generation framework

This framework generates an extern "C" bridge to C++ headers from a
clang AST dump (IR). Candidate declarations become nodes of a graph;
only those reachable from the user's allow-list are emitted. The build
driver turns every `include_cxx(...)` invocation in a host source file
into a generated header/source pair ready to compile.
"""

from .types import Namespace, TypeName
from .api import (
    Api, Use, Unused, Used, UsedWithAlias, AdditionalNeed, NeedKind,
    ConvertError, NoContent, UnsafePODType, UnexpectedForeignItem,
    UnexpectedOuterItem, UnexpectedItemInMod, ComplexTypedefTarget, UnexpectedThisType,
)
from .ir import IR
from .conversion import BridgeConverter, raise_retained_errors
from .gc import filter_apis_by_following_edges_from_allowlist
from .codegen import CodeGen
from .cxxgen import CxxGenerator
from .header_parser import ClangHeaderParser, HeaderParseError
from .include_cpp import IncludeCpp, MacroParseError
from .build import (
    Builder, NativeBuild, find_include_cxx_macros,
    BuildError, FileReadError, Syntax, InvalidCxx, TempDirCreationFailed,
    FileWriteFail, NoIncludeCxxMacrosFound, MacroParseFail,
)

__all__ = [
    'Namespace', 'TypeName',
    'Api', 'Use', 'Unused', 'Used', 'UsedWithAlias', 'AdditionalNeed', 'NeedKind',
    'ConvertError', 'NoContent', 'UnsafePODType', 'UnexpectedForeignItem',
    'UnexpectedOuterItem', 'UnexpectedItemInMod', 'ComplexTypedefTarget', 'UnexpectedThisType',
    'IR',
    'BridgeConverter', 'raise_retained_errors',
    'filter_apis_by_following_edges_from_allowlist',
    'CodeGen', 'CxxGenerator',
    'ClangHeaderParser', 'HeaderParseError',
    'IncludeCpp', 'MacroParseError',
    'Builder', 'NativeBuild', 'find_include_cxx_macros',
    'BuildError', 'FileReadError', 'Syntax', 'InvalidCxx', 'TempDirCreationFailed',
    'FileWriteFail', 'NoIncludeCxxMacrosFound', 'MacroParseFail',
]
