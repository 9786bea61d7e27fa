"""
Bridge code generation module

Generates the C++ header and source of the extern "C" bridge from the
Apis that survived garbage collection.
"""

from typing import TYPE_CHECKING

from .api import NeedKind
from .codegen import CodeGen, value_type

if TYPE_CHECKING:
    from .api import Api, AdditionalNeed


class CxxGenerator:
    """Generates the header/source pair for one include_cxx invocation"""

    def __init__(self, headers: list[str]):
        self.headers = headers

    def generate(self, apis: list['Api'], header_name: str) -> tuple[str, str]:
        """Returns (header code, source code)"""
        return self._gen_header(apis), self._gen_source(apis, header_name)

    def _gen_header(self, apis: list['Api']) -> str:
        gen = CodeGen(banner=True)
        gen.line('#pragma once')
        gen.include('type_traits', system=True)
        for header in self.headers:
            gen.include(header)
        gen.line()

        for api in apis:
            for item in api.global_items:
                gen.line(item)
        gen.line()

        with gen.extern_c():
            for api in apis:
                if api.bridge_declaration:
                    gen.line(api.bridge_declaration)
        return gen.output()

    def _gen_source(self, apis: list['Api'], header_name: str) -> str:
        gen = CodeGen(banner=True)
        gen.include(header_name)
        gen.line()

        with gen.extern_c():
            for api in apis:
                if api.additional_cpp is None or not api.bridge_declaration:
                    continue
                signature = api.bridge_declaration.rstrip(';')
                with gen.block(f'{signature} {{'):
                    self._gen_body(api.additional_cpp, gen)
                gen.line()
        return gen.output()

    def _gen_body(self, need: 'AdditionalNeed', gen: CodeGen):
        if need.kind == NeedKind.DELETER:
            gen.line('delete obj;')
            return

        args = ', '.join(f'*{p.name}' if p.by_pointer else p.name for p in need.params)
        if need.kind == NeedKind.METHOD_WRAPPER:
            call = f'self->{need.target}({args})'
        else:
            call = f'{need.target}({args})'

        if need.return_kind == 'void':
            gen.line(f'{call};')
        elif need.return_kind == 'reference':
            gen.line(f'return &{call};')
        elif need.return_kind == 'boxed':
            gen.line(f'return new {value_type(need.return_type)}({call});')
        else:
            gen.line(f'return {call};')
