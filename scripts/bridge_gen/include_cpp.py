"""
include_cxx macro module

One `include_cxx(...)` invocation in a host source file: its directives,
and the pipeline that turns them into a bridge header/source pair.

    include_cxx(
        Header("input.h"),
        Allow("ns::DoMath"),
        AllowPOD("ns::Point"),
    )
"""

import ast
import logging
import os
from pathlib import Path
from typing import Callable, Iterable, Optional, Union

from .api import Api, NeedKind, NoContent
from .conversion import BridgeConverter, raise_retained_errors
from .cxxgen import CxxGenerator
from .gc import filter_apis_by_following_edges_from_allowlist
from .header_parser import ClangHeaderParser
from .ir import IR
from .types import TypeName

logger = logging.getLogger(__name__)

# Name of the bridge-declaration macro in host source files
INCLUDE_CXX_MACRO = 'include_cxx'
# Environment variable overriding the header search directory
INC_ENV_VAR = 'BRIDGE_GEN_INC'

DIRECTIVES = ('Header', 'Allow', 'AllowPOD')

# (headers, include_dir, allowlist) -> IR
HeaderParser = Callable[[list[str], Path, 'set[TypeName]'], IR]


class MacroParseError(Exception):
    """An include_cxx invocation has arguments we do not understand"""

    def __init__(self, message: str, node: Optional[ast.AST] = None):
        self.lineno = getattr(node, 'lineno', -1)
        if self.lineno > 0:
            message = f'line {self.lineno}: {message}'
        super().__init__(message)


class IncludeCpp:
    """Directives of one include_cxx invocation"""

    def __init__(self, headers: list[str], allowlist: Iterable[str] = (),
                 pod_requests: Iterable[str] = (),
                 inc_dir: Optional[Union[str, Path]] = None,
                 header_parser: Optional[HeaderParser] = None):
        self.headers = list(headers)
        self.allowlist = list(allowlist)
        self.pod_requests = list(pod_requests)
        self.inc_dir = inc_dir
        self.header_parser = header_parser or ClangHeaderParser()
        self._apis: Optional[list[Api]] = None

    @classmethod
    def from_call(cls, call: ast.Call, inc_dir: Optional[Union[str, Path]] = None,
                  header_parser: Optional[HeaderParser] = None) -> 'IncludeCpp':
        """Read directives from an `include_cxx(...)` call node"""
        if call.keywords:
            raise MacroParseError(f'{INCLUDE_CXX_MACRO} takes no keyword arguments', call)

        found: dict[str, list[str]] = {name: [] for name in DIRECTIVES}
        for arg in call.args:
            name, value = cls._parse_directive(arg)
            found[name].append(value)

        if not found['Header']:
            raise MacroParseError(f'{INCLUDE_CXX_MACRO} needs at least one Header directive', call)

        return cls(
            headers=found['Header'],
            allowlist=found['Allow'],
            pod_requests=found['AllowPOD'],
            inc_dir=inc_dir,
            header_parser=header_parser,
        )

    @staticmethod
    def _parse_directive(arg: ast.expr) -> tuple[str, str]:
        """Header("x.h") -> ('Header', 'x.h')"""
        if not (isinstance(arg, ast.Call) and isinstance(arg.func, ast.Name)):
            raise MacroParseError('expected a directive such as Header("file.h")', arg)
        name = arg.func.id
        if name not in DIRECTIVES:
            raise MacroParseError(f'unknown directive {name}; expected one of {", ".join(DIRECTIVES)}', arg)
        if arg.keywords or len(arg.args) != 1:
            raise MacroParseError(f'{name} takes exactly one string argument', arg)
        value = arg.args[0]
        if not (isinstance(value, ast.Constant) and isinstance(value.value, str) and value.value):
            raise MacroParseError(f'{name} takes exactly one string argument', arg)
        return name, value.value

    def include_dir(self) -> Path:
        """Directory the headers are found in

        BRIDGE_GEN_INC wins over the directory given at construction,
        which is normally the host source file's directory.
        """
        env = os.environ.get(INC_ENV_VAR)
        if env:
            return Path(env)
        if self.inc_dir is not None:
            return Path(self.inc_dir)
        return Path.cwd()

    def allowlist_typenames(self) -> set[TypeName]:
        """Every requested name; POD requests are implicitly allowed"""
        return {TypeName.from_cpp(n) for n in self.allowlist + self.pod_requests}

    def generate_apis(self) -> list[Api]:
        """Parse headers, build the item graph and keep what is reachable

        Raises ConvertError (NoContent if nothing survives) or
        HeaderParseError.
        """
        if self._apis is not None:
            return self._apis

        allowlist = self.allowlist_typenames()
        ir = self.header_parser(self.headers, self.include_dir(), allowlist)
        converter = BridgeConverter({TypeName.from_cpp(n) for n in self.pod_requests})
        apis = converter.convert(ir)
        apis = filter_apis_by_following_edges_from_allowlist(apis, allowlist)
        raise_retained_errors(apis)
        if not apis:
            raise NoContent()
        logger.info('%s: %d items retained', ', '.join(self.headers), len(apis))
        self._apis = apis
        return apis

    def generate_h_and_cxx(self, header_name: str = 'gen.h') -> tuple[str, str]:
        """Returns (header code, source code); the source includes `header_name`"""
        apis = self.generate_apis()
        return CxxGenerator(self.headers).generate(apis, header_name)

    def surface_names(self) -> dict[str, list[str]]:
        """Host-facing name -> bridge symbols (functions) or C++ type names

        Overloads share one host-facing name.
        """
        names: dict[str, list[str]] = {}
        for api in self.generate_apis():
            surface = api.surface_name()
            if surface is None:
                continue
            need = api.additional_cpp
            if need is not None and need.kind != NeedKind.DELETER:
                target = need.bridge_name
            else:
                target = api.typename().to_cpp_name()
            names.setdefault(surface, []).append(target)
        return names
