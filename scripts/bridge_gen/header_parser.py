"""
Header parser module

Runs clang over the requested headers and reduces its JSON AST dump to
the IR dictionary format read by `IR.from_dict`.
"""

import json
import logging
import os
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Optional

from .ir import IR
from .types import Namespace, TypeName

logger = logging.getLogger(__name__)

# Record kinds that carry fields and methods
RECORD_KINDS = ('CXXRecordDecl', 'RecordDecl')
# Clang node kinds that are never bound and never reported
SKIPPED_KINDS = (
    'CXXConstructorDecl', 'CXXDestructorDecl', 'CXXConversionDecl',
    'AccessSpecDecl', 'FriendDecl', 'UsingDecl', 'UsingDirectiveDecl',
    'StaticAssertDecl', 'EmptyDecl',
)


class HeaderParseError(Exception):
    """clang could not be run or rejected the headers"""


def find_clang() -> Optional[str]:
    """Find clang++: CLANGPP environment variable, then PATH"""
    env = os.environ.get('CLANGPP')
    if env and shutil.which(env):
        return env
    return shutil.which('clang++')


class ClangHeaderParser:
    """Header parser backed by `clang++ -Xclang -ast-dump=json`

    Only declarations located in the requested headers are kept. Node
    kinds the reducer does not model are passed through only when they
    are allow-listed, so that the converter reports them.
    """

    def __init__(self, clang: Optional[str] = None, extra_args: tuple[str, ...] = ('-std=c++14',)):
        self.clang = clang
        self.extra_args = list(extra_args)

    def __call__(self, headers: list[str], include_dir: Path,
                 allowlist: 'set[TypeName]') -> IR:
        return IR.from_dict(self.parse(headers, include_dir, allowlist))

    def parse(self, headers: list[str], include_dir: Path,
              allowlist: 'set[TypeName]') -> dict:
        ast = self._dump_ast(headers, include_dir)
        reducer = _AstReducer(
            {str((Path(include_dir) / h).resolve()) for h in headers},
            allowlist,
        )
        return {
            'headers': list(headers),
            'decls': reducer.reduce(ast.get('inner', []), Namespace.root()),
        }

    def _dump_ast(self, headers: list[str], include_dir: Path) -> dict:
        clang = self.clang or find_clang()
        if not clang:
            raise HeaderParseError('clang++ not found; set CLANGPP or add clang++ to PATH')

        with tempfile.TemporaryDirectory(prefix='bridge_gen_parse_') as tmp:
            stub = Path(tmp) / 'stub.cpp'
            stub.write_text(''.join(f'#include "{h}"\n' for h in headers), encoding='utf-8')
            cmd = [
                clang, '-x', 'c++', *self.extra_args,
                '-fsyntax-only', '-Xclang', '-ast-dump=json',
                f'-I{include_dir}', str(stub),
            ]
            logger.debug('running %s', ' '.join(cmd))
            try:
                result = subprocess.run(cmd, capture_output=True, text=True)
            except OSError as e:
                raise HeaderParseError(f'failed to run {clang}: {e}') from e

        if result.returncode != 0:
            raise HeaderParseError(f'clang failed to parse {", ".join(headers)}:\n{result.stderr}')
        try:
            return json.loads(result.stdout)
        except json.JSONDecodeError as e:
            raise HeaderParseError(f'clang produced an unreadable AST dump: {e}') from e


class _AstReducer:
    """Walks clang JSON nodes in order, tracking the current source file"""

    def __init__(self, header_paths: set[str], allowlist: 'set[TypeName]'):
        self.header_paths = header_paths
        self.allowlist = allowlist
        self._cur_file = ''

    def _update_file(self, node: dict):
        # clang only prints 'file' when it changes from the previous location
        for loc in (node.get('loc', {}), node.get('range', {}).get('begin', {})):
            loc = loc.get('expansionLoc', loc)
            if 'file' in loc:
                self._cur_file = str(Path(loc['file']).resolve())
                return

    def _in_headers(self) -> bool:
        return self._cur_file in self.header_paths

    def reduce(self, nodes: list, ns: Namespace) -> list[dict]:
        decls = []
        for node in nodes:
            self._update_file(node)
            kind = node.get('kind', '')
            if node.get('isImplicit') or kind in SKIPPED_KINDS:
                self._skip_children(node)
                continue

            if kind == 'NamespaceDecl':
                name = node.get('name', '')
                inner = self.reduce(node.get('inner', []), ns.child(name) if name else ns)
                if inner:
                    decls.append({'kind': 'namespace', 'name': name, 'decls': inner})
                continue
            if kind == 'LinkageSpecDecl':
                decls.extend(self.reduce(node.get('inner', []), ns))
                continue

            if self._in_headers():
                decls.extend(self._reduce_decl(node, kind, ns))
            self._skip_children(node)
        return decls

    def _reduce_decl(self, node: dict, kind: str, ns: Namespace) -> list[dict]:
        if kind in RECORD_KINDS:
            return self._reduce_record(node)
        elif kind == 'FunctionDecl' and not node['name'].startswith('operator'):
            return [self._reduce_function(node, 'func')]
        elif kind == 'EnumDecl' and node.get('name'):
            return [self._reduce_enum(node)]
        elif kind in ('TypedefDecl', 'TypeAliasDecl'):
            return [{
                'kind': 'typedef',
                'name': node['name'],
                'type': node['type']['qualType'],
            }]
        elif TypeName(ns, node.get('name', '')) in self.allowlist:
            return [{'kind': kind, 'name': node['name']}]
        return []

    def _skip_children(self, node: dict):
        """Keep the file tracking in sync across nodes we do not reduce"""
        for child in node.get('inner', []):
            self._update_file(child)
            self._skip_children(child)

    def _reduce_record(self, node: dict) -> list[dict]:
        name = node.get('name')
        if not name or not node.get('completeDefinition'):
            return []
        data = node.get('definitionData', {})
        struct = {
            'kind': 'struct',
            'name': name,
            'fields': [],
            'is_trivial': data.get('isTriviallyCopyable', data.get('isTrivial', True)),
        }
        methods = []
        for child in node.get('inner', []):
            if child.get('isImplicit') or child.get('access') in ('private', 'protected'):
                continue
            kind = child.get('kind')
            if kind == 'FieldDecl':
                struct['fields'].append({'name': child['name'], 'type': child['type']['qualType']})
            elif kind == 'CXXMethodDecl' and not child['name'].startswith('operator'):
                method = self._reduce_function(child, 'method')
                method['parent'] = name
                method['is_const'] = method['type'].endswith('const')
                method['is_static'] = child.get('storageClass') == 'static'
                methods.append(method)
        return [struct] + methods

    @staticmethod
    def _reduce_function(node: dict, kind: str) -> dict:
        params = [
            {'name': p.get('name', ''), 'type': p['type']['qualType']}
            for p in node.get('inner', []) if p.get('kind') == 'ParmVarDecl'
        ]
        return {
            'kind': kind,
            'name': node['name'],
            'type': node['type']['qualType'],
            'params': params,
        }

    @staticmethod
    def _reduce_enum(node: dict) -> dict:
        return {'kind': 'enum', 'name': node['name']}
