"""Tests for bridge header/source generation."""

from bridge_gen.codegen import CodeGen
from bridge_gen.conversion import BridgeConverter
from bridge_gen.cxxgen import CxxGenerator
from bridge_gen.types import TypeName


def generate(sample_ir, pods=()):
    apis = BridgeConverter({TypeName.from_cpp(p) for p in pods}).convert(sample_ir)
    return CxxGenerator(['input.h']).generate(apis, 'gen0.h')


def test_header_layout(sample_ir) -> None:
    """Verify includes, global items and the extern "C" block."""
    h, _ = generate(sample_ir, pods=['geo::Point'])
    lines = h.splitlines()
    assert lines[0] == '/* machine generated, do not edit */'
    assert '#pragma once' in lines
    assert '#include "input.h"' in lines
    assert 'typedef ::geo::Point bridge_geo_Point;' in lines
    assert 'typedef ::geo::Color bridge_geo_Color;' in lines
    assert 'typedef ::geo::Point bridge_geo_PointAlias;' in lines
    assert 'extern "C" {' in lines
    assert '    void bridge_unrelated(void);' in lines
    assert lines[-1] == '}'


def test_wrapper_bodies(sample_ir) -> None:
    """Verify each call shape is forwarded to the native symbol."""
    _, cxx = generate(sample_ir)
    assert '#include "gen0.h"' in cxx
    assert '        return ::geo::distance(*a, *b);' in cxx
    assert '        return self->area();' in cxx
    assert '        return new ::geo::Shape(::geo::make_shape(sides));' in cxx
    assert '        return &::geo::origin();' in cxx
    assert '        return new ::geo::Point(::geo::scale(*p, f));' in cxx
    assert '        ::unrelated();' in cxx
    assert '        delete obj;' in cxx


def test_wrapper_signature_matches_declaration(sample_ir) -> None:
    """Verify definitions reuse the declared bridge signature."""
    h, cxx = generate(sample_ir)
    assert '    double bridge_geo_distance(const ::geo::Point *a, const ::geo::Point *b);' in h
    assert '    double bridge_geo_distance(const ::geo::Point *a, const ::geo::Point *b) {' in cxx


def test_pod_values_pass_through(sample_ir) -> None:
    """Verify POD structs cross by value without boxing."""
    _, cxx = generate(sample_ir, pods=['geo::Point'])
    assert '        return ::geo::scale(p, f);' in cxx


def test_types_without_wrappers_have_no_body(sample_ir) -> None:
    """Verify POD structs, enums and typedefs only appear in the header."""
    _, cxx = generate(sample_ir, pods=['geo::Point'])
    assert 'bridge_geo_Point' not in cxx
    assert 'bridge_geo_Color' not in cxx


def test_codegen_block_indentation() -> None:
    """Verify nested blocks indent and close."""
    gen = CodeGen()
    with gen.block('extern "C" {'):
        with gen.block('void f(void) {'):
            gen.line('g();')
    assert gen.output() == 'extern "C" {\n    void f(void) {\n        g();\n    }\n}\n'


def test_codegen_banner_and_includes() -> None:
    """Verify the banner, include spellings and the extern "C" helper."""
    gen = CodeGen(banner=True)
    gen.include('type_traits', system=True)
    gen.include('gen0.h')
    with gen.extern_c():
        gen.line()
    assert gen.output().splitlines() == [
        '/* machine generated, do not edit */',
        '#include <type_traits>',
        '#include "gen0.h"',
        'extern "C" {',
        '',
        '}',
    ]
