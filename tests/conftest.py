"""Shared fixtures: a small parsed header in IR form."""

import copy

import pytest

from bridge_gen import IR


SAMPLE_IR = {
    'headers': ['input.h'],
    'decls': [
        {'kind': 'namespace', 'name': 'geo', 'decls': [
            {'kind': 'struct', 'name': 'Point', 'fields': [
                {'name': 'x', 'type': 'int'},
                {'name': 'y', 'type': 'int'},
            ]},
            {'kind': 'struct', 'name': 'Shape', 'is_trivial': False, 'fields': [
                {'name': 'name', 'type': 'std::string'},
            ]},
            {'kind': 'method', 'parent': 'Shape', 'name': 'area',
             'type': 'double () const', 'params': [], 'is_const': True},
            {'kind': 'func', 'name': 'distance', 'type': 'double (const Point &, const Point &)',
             'params': [{'name': 'a', 'type': 'const Point &'},
                        {'name': 'b', 'type': 'const Point &'}]},
            {'kind': 'func', 'name': 'make_shape', 'type': 'Shape (int)',
             'params': [{'name': 'sides', 'type': 'int'}]},
            {'kind': 'func', 'name': 'origin', 'type': 'const Point &()', 'params': []},
            {'kind': 'func', 'name': 'scale', 'type': 'Point (Point, int)',
             'params': [{'name': 'p', 'type': 'Point'}, {'name': 'f', 'type': 'int'}]},
            {'kind': 'func', 'name': 'scale', 'type': 'Point (Point, double)',
             'params': [{'name': 'p', 'type': 'Point'}, {'name': 'f', 'type': 'double'}]},
            {'kind': 'enum', 'name': 'Color', 'items': [{'name': 'Red', 'value': 0}]},
            {'kind': 'typedef', 'name': 'PointAlias', 'type': 'Point'},
        ]},
        {'kind': 'func', 'name': 'unrelated', 'type': 'void ()', 'params': []},
    ],
}


@pytest.fixture
def sample_data() -> dict:
    return copy.deepcopy(SAMPLE_IR)


@pytest.fixture
def sample_ir(sample_data) -> IR:
    return IR.from_dict(sample_data)


@pytest.fixture
def fake_parser(sample_data):
    """Header parser stand-in returning the sample IR"""
    def parse(headers, include_dir, allowlist):
        return IR.from_dict(sample_data)
    return parse
