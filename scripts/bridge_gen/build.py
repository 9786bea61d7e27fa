"""
Build driver module

For use from a build script: finds the `include_cxx(...)` invocations in
a host source file, generates the C++ for each one into a private
temporary directory and returns a NativeBuild that knows how to compile
it.
"""

import ast
import logging
import os
import shlex
import shutil
import subprocess
import tempfile
from pathlib import Path
from typing import Optional, Union

from .api import ConvertError
from .header_parser import HeaderParseError
from .include_cpp import INCLUDE_CXX_MACRO, HeaderParser, IncludeCpp, MacroParseError

logger = logging.getLogger(__name__)


# ==============================================================================
# Errors
# ==============================================================================

class BuildError(Exception):
    """Creating a NativeBuild from include_cxx macros failed"""


class FileReadError(BuildError):
    """The source file didn't exist or couldn't be read"""


class Syntax(BuildError):
    """The source file couldn't be parsed"""


class InvalidCxx(BuildError):
    """The C++ for a macro couldn't be generated"""

    def __init__(self, message: str):
        self.message = message
        super().__init__(message)


class TempDirCreationFailed(BuildError):
    """No temporary directory for the generated C++"""


class FileWriteFail(BuildError):
    """The generated C++ couldn't be written to disk"""


class NoIncludeCxxMacrosFound(BuildError):
    """No include_cxx macro anywhere in the file"""

    def __init__(self, path: Union[str, Path]):
        super().__init__(f'no {INCLUDE_CXX_MACRO}(...) invocation found in {path}')


class MacroParseFail(BuildError):
    """An include_cxx macro couldn't be parsed"""


# ==============================================================================
# Native build configuration
# ==============================================================================

class NativeBuild:
    """Compiler configuration for the generated sources

    Tool selection follows the usual environment variables: CXX/CC for
    the compiler and AR for the archiver.
    """

    def __init__(self):
        self._cpp = False
        self._compiler: Optional[str] = None
        self.includes: list[Path] = []
        self.files: list[Path] = []
        self.flags: list[str] = []
        self.defines: list[tuple[str, Optional[str]]] = []

    def cpp(self, enabled: bool = True) -> 'NativeBuild':
        self._cpp = enabled
        return self

    def compiler(self, path: str) -> 'NativeBuild':
        self._compiler = path
        return self

    def include(self, directory: Union[str, Path]) -> 'NativeBuild':
        self.includes.append(Path(directory))
        return self

    def file(self, path: Union[str, Path]) -> 'NativeBuild':
        self.files.append(Path(path))
        return self

    def flag(self, flag: str) -> 'NativeBuild':
        self.flags.append(flag)
        return self

    def define(self, name: str, value: Optional[str] = None) -> 'NativeBuild':
        self.defines.append((name, value))
        return self

    def get_compiler(self) -> str:
        if self._compiler:
            return self._compiler
        if self._cpp:
            return os.environ.get('CXX', 'c++')
        return os.environ.get('CC', 'cc')

    def compile_commands(self, out_dir: Union[str, Path]) -> list[list[str]]:
        """One compiler command per source file, producing out_dir/<stem>.o"""
        compiler = shlex.split(self.get_compiler())
        args = ['-c', '-fPIC']
        if self._cpp:
            args.append('-std=c++14')
        args += [f'-I{d}' for d in self.includes]
        args += [f'-D{n}' if v is None else f'-D{n}={v}' for n, v in self.defines]
        args += self.flags
        return [
            [*compiler, *args, str(src), '-o', str(Path(out_dir) / f'{src.stem}.o')]
            for src in self.files
        ]

    def compile(self, lib_name: str, out_dir: Union[str, Path]) -> Path:
        """Compile every file and archive the objects into lib<lib_name>.a"""
        out_dir = Path(out_dir)
        out_dir.mkdir(parents=True, exist_ok=True)
        objects = []
        for cmd in self.compile_commands(out_dir):
            logger.info('running %s', ' '.join(cmd))
            subprocess.run(cmd, check=True)
            objects.append(cmd[-1])

        lib = out_dir / f'lib{lib_name}.a'
        ar = os.environ.get('AR') or shutil.which('ar') or 'ar'
        subprocess.run([ar, 'crs', str(lib), *objects], check=True)
        return lib


# ==============================================================================
# Builder
# ==============================================================================

def find_include_cxx_macros(tree: ast.Module) -> list[ast.Call]:
    """Top-level `include_cxx(...)` expression statements, in source order"""
    calls = []
    for item in tree.body:
        if not isinstance(item, ast.Expr) or not isinstance(item.value, ast.Call):
            continue
        func = item.value.func
        if isinstance(func, ast.Name) and func.id == INCLUDE_CXX_MACRO:
            calls.append(item.value)
    return calls


class Builder:
    """Turns the include_cxx macros of one source file into a NativeBuild

    The Builder owns a temporary directory holding the generated C++
    as well as the NativeBuild which knows how to build it. The
    directory lives as long as the Builder: it is removed by `close()`,
    on leaving a `with` block, or when the Builder is garbage collected.

        with Builder('src/main.py') as b:
            b.builder().flag('-O2').compile('bridge', 'out')
    """

    def __init__(self, source_file: Union[str, Path],
                 header_parser: Optional[HeaderParser] = None):
        # TODO: write into a caller-provided build output directory
        # instead of a private temporary one.
        try:
            self._tdir = tempfile.TemporaryDirectory(prefix='bridge_gen_')
        except OSError as e:
            raise TempDirCreationFailed(e) from e

        try:
            self._build = self._configure(Path(source_file), header_parser)
        except BaseException:
            self._tdir.cleanup()
            raise

    def _configure(self, source_file: Path, header_parser: Optional[HeaderParser]) -> NativeBuild:
        build = NativeBuild().cpp(True)
        try:
            source = source_file.read_text(encoding='utf-8')
        except (OSError, UnicodeDecodeError) as e:
            raise FileReadError(e) from e
        try:
            tree = ast.parse(source, filename=str(source_file))
        except (SyntaxError, ValueError) as e:
            raise Syntax(e) from e

        counter = 0
        for call in find_include_cxx_macros(tree):
            try:
                include_cpp = IncludeCpp.from_call(
                    call, inc_dir=source_file.parent, header_parser=header_parser)
            except MacroParseError as e:
                raise MacroParseFail(e) from e
            build.include(include_cpp.include_dir())

            header_name = f'gen{counter}.h'
            try:
                h, cxx = include_cpp.generate_h_and_cxx(header_name)
            except (ConvertError, HeaderParseError) as e:
                raise InvalidCxx(str(e)) from e

            fname = f'gen{counter}.cxx'
            counter += 1
            try:
                self._write_to_file(header_name, h)
                gen_cxx_path = self._write_to_file(fname, cxx)
            except OSError as e:
                raise FileWriteFail(e) from e
            logger.debug('%s:%d -> %s', source_file, call.lineno, gen_cxx_path)
            build.file(gen_cxx_path)

        if counter == 0:
            raise NoIncludeCxxMacrosFound(source_file)
        return build

    def _write_to_file(self, filename: str, content: str) -> Path:
        path = self.out_dir / filename
        with open(path, 'w', encoding='utf-8', newline='\n') as f:
            f.write(content)
        return path

    @property
    def out_dir(self) -> Path:
        """Directory holding the generated files"""
        return Path(self._tdir.name)

    def builder(self) -> NativeBuild:
        """The NativeBuild, for further configuration and compiling"""
        return self._build

    def close(self):
        self._tdir.cleanup()

    def __enter__(self) -> 'Builder':
        return self

    def __exit__(self, *args):
        self.close()
