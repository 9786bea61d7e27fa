"""Tests for include_cxx directive parsing and the generation pipeline."""

import ast
from pathlib import Path

import pytest

from bridge_gen.api import ComplexTypedefTarget, NoContent, UnexpectedForeignItem
from bridge_gen.include_cpp import INC_ENV_VAR, IncludeCpp, MacroParseError
from bridge_gen.types import TypeName


def macro_call(source: str) -> ast.Call:
    return ast.parse(source).body[0].value


def make(source: str, parser, inc_dir=None) -> IncludeCpp:
    return IncludeCpp.from_call(macro_call(source), inc_dir=inc_dir, header_parser=parser)


def test_from_call_reads_directives(fake_parser) -> None:
    """Verify every directive kind is collected in order."""
    inc = make('include_cxx(Header("a.h"), Header("b.h"), Allow("geo::distance"), '
               'AllowPOD("geo::Point"))', fake_parser)
    assert inc.headers == ['a.h', 'b.h']
    assert inc.allowlist == ['geo::distance']
    assert inc.pod_requests == ['geo::Point']
    assert inc.allowlist_typenames() == {
        TypeName.from_cpp('geo::distance'), TypeName.from_cpp('geo::Point'),
    }


@pytest.mark.parametrize('source', [
    'include_cxx(Header("a.h"), extra=1)',
    'include_cxx(Header("a.h"), Generate("x"))',
    'include_cxx(Header(1))',
    'include_cxx(Header("a.h", "b.h"))',
    'include_cxx(Header(""))',
    'include_cxx(Header("a.h"), "geo::Point")',
    'include_cxx(Allow("geo::Point"))',
])
def test_from_call_rejects_malformed(source, fake_parser) -> None:
    """Verify malformed invocations raise MacroParseError."""
    with pytest.raises(MacroParseError):
        make(source, fake_parser)


def test_macro_parse_error_has_line(fake_parser) -> None:
    """Verify the error points at the offending line."""
    with pytest.raises(MacroParseError) as e:
        make('include_cxx(\n    Header("a.h"),\n    Bogus("x"),\n)', fake_parser)
    assert e.value.lineno == 3
    assert str(e.value).startswith('line 3:')


def test_include_dir_prefers_environment(monkeypatch, tmp_path, fake_parser) -> None:
    """Verify BRIDGE_GEN_INC overrides the constructor directory."""
    inc = make('include_cxx(Header("a.h"))', fake_parser, inc_dir='/src')
    monkeypatch.delenv(INC_ENV_VAR, raising=False)
    assert inc.include_dir() == Path('/src')
    monkeypatch.setenv(INC_ENV_VAR, str(tmp_path))
    assert inc.include_dir() == tmp_path


def test_generate_apis_prunes_to_allowlist(monkeypatch, fake_parser) -> None:
    """Verify only the requested items and their dependencies survive."""
    monkeypatch.delenv(INC_ENV_VAR, raising=False)
    inc = make('include_cxx(Header("input.h"), Allow("geo::distance"), AllowPOD("geo::Point"))',
               fake_parser)
    assert [a.id for a in inc.generate_apis()] == ['Point', 'distance']


def test_generate_apis_keeps_methods_of_allowed_class(fake_parser) -> None:
    """Verify allow-listing a class keeps its methods."""
    inc = make('include_cxx(Header("input.h"), Allow("geo::Shape"))', fake_parser)
    assert [a.id for a in inc.generate_apis()] == ['Shape', 'Shape_area']


def test_generate_apis_follows_return_types(fake_parser) -> None:
    """Verify a returned type is kept alive by its function."""
    inc = make('include_cxx(Header("input.h"), Allow("geo::make_shape"))', fake_parser)
    assert [a.id for a in inc.generate_apis()] == ['Shape', 'make_shape']


def test_header_parser_receives_request(monkeypatch, tmp_path, sample_data) -> None:
    """Verify the parser is called with headers, include dir and allow-list."""
    from bridge_gen.ir import IR
    calls = []

    def parser(headers, include_dir, allowlist):
        calls.append((headers, include_dir, allowlist))
        return IR.from_dict(sample_data)

    monkeypatch.delenv(INC_ENV_VAR, raising=False)
    inc = make('include_cxx(Header("input.h"), Allow("unrelated"))', parser, inc_dir=tmp_path)
    inc.generate_apis()
    inc.generate_apis()
    assert calls == [(['input.h'], tmp_path, {TypeName.from_cpp('unrelated')})]


def test_no_content_when_nothing_matches(fake_parser) -> None:
    """Verify an allow-list matching nothing escalates to NoContent."""
    inc = make('include_cxx(Header("input.h"), Allow("geo::Missing"))', fake_parser)
    with pytest.raises(NoContent):
        inc.generate_apis()


def test_no_content_for_empty_headers() -> None:
    """Verify an empty candidate set escalates to NoContent."""
    from bridge_gen.ir import IR
    inc = IncludeCpp(['empty.h'], ['Anything'],
                     header_parser=lambda h, d, a: IR.from_dict({'decls': []}))
    with pytest.raises(NoContent):
        inc.generate_apis()


def test_surface_names_group_overloads(fake_parser) -> None:
    """Verify overloads share their native name on the host surface."""
    inc = make('include_cxx(Header("input.h"), Allow("geo::scale"), AllowPOD("geo::Point"))',
               fake_parser)
    assert inc.surface_names() == {
        'Point': ['geo::Point'],
        'scale': ['bridge_geo_scale', 'bridge_geo_scale1'],
    }


def test_surface_names_skip_unused(fake_parser) -> None:
    """Verify methods stay off the module-level surface."""
    inc = make('include_cxx(Header("input.h"), Allow("geo::Shape"))', fake_parser)
    assert inc.surface_names() == {'Shape': ['geo::Shape']}


def test_generate_h_and_cxx(fake_parser) -> None:
    """Verify the pair references the user header and each other."""
    inc = make('include_cxx(Header("input.h"), Allow("geo::distance"), AllowPOD("geo::Point"))',
               fake_parser)
    h, cxx = inc.generate_h_and_cxx('gen0.h')
    assert '#include "input.h"' in h
    assert 'double bridge_geo_distance(const ::geo::Point *a, const ::geo::Point *b);' in h
    assert '#include "gen0.h"' in cxx
    assert 'return ::geo::distance(*a, *b);' in cxx


MIXED_HEADER = {'decls': [
    {'kind': 'func', 'name': 'add', 'type': 'int (int, int)',
     'params': [{'name': 'a', 'type': 'int'}, {'name': 'b', 'type': 'int'}]},
    {'kind': 'typedef', 'name': 'callback', 'type': 'void (*)(int)'},
    {'kind': 'typedef', 'name': 'Ints', 'type': 'std::vector<int>'},
    {'kind': 'func', 'name': 'log', 'type': 'void (const char *, ...)',
     'params': [{'name': 'fmt', 'type': 'const char *'}]},
    {'kind': 'func', 'name': 'subscribe', 'type': 'void (callback)',
     'params': [{'name': 'cb', 'type': 'callback'}]},
]}


def mixed_parser(headers, include_dir, allowlist):
    from bridge_gen.ir import IR
    return IR.from_dict(MIXED_HEADER)


def test_unrequested_unsupported_items_are_ignored() -> None:
    """Verify unsupported declarations nobody asked for do not abort generation."""
    inc = IncludeCpp(['mixed.h'], ['add'], header_parser=mixed_parser)
    assert [a.id for a in inc.generate_apis()] == ['add']
    h, _ = inc.generate_h_and_cxx('gen0.h')
    assert 'int bridge_add(int a, int b);' in h


@pytest.mark.parametrize('name, error', [
    ('callback', ComplexTypedefTarget),
    ('Ints', ComplexTypedefTarget),
    ('log', UnexpectedForeignItem),
    ('subscribe', ComplexTypedefTarget),
])
def test_requested_unsupported_items_still_fail(name, error) -> None:
    """Verify an unsupported item fails when requested or depended on."""
    inc = IncludeCpp(['mixed.h'], [name], header_parser=mixed_parser)
    with pytest.raises(error):
        inc.generate_apis()
