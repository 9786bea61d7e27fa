#!/usr/bin/env python3
"""
gen_cxx.py - C++ bridge generator entry point

Generates the bridge header/source pairs for every include_cxx(...)
invocation in a host source file.

Usage:
    python scripts/gen_cxx.py SOURCE [--outdir DIR] [--ir IR.json] [-v]
"""

import argparse
import logging
import os
import shutil
import sys

# Add scripts directory to path
script_dir = os.path.dirname(os.path.abspath(__file__))
sys.path.insert(0, script_dir)

from bridge_gen import IR, Builder, BuildError


def parse_args(argv=None):
    parser = argparse.ArgumentParser(description='Generate C++ bridge code')
    parser.add_argument('source', help='Host source file containing include_cxx(...) invocations')
    parser.add_argument('--outdir', default='gen',
                        help='Directory for the generated files (default: gen)')
    parser.add_argument('--ir', default=None,
                        help='Read declarations from an IR JSON file instead of running clang')
    parser.add_argument('-v', '--verbose', action='store_true', help='Debug logging')
    return parser.parse_args(argv)


def main(argv=None) -> int:
    args = parse_args(argv)
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.WARNING,
        format='%(levelname)s %(name)s: %(message)s',
    )

    header_parser = None
    if args.ir:
        ir = IR.load(args.ir)
        header_parser = lambda headers, include_dir, allowlist: ir

    print(f'=== Generating C++ bridge: {args.source}')
    try:
        with Builder(args.source, header_parser=header_parser) as builder:
            os.makedirs(args.outdir, exist_ok=True)
            for src in builder.builder().files:
                for path in (src, src.with_suffix('.h')):
                    shutil.copyfile(path, os.path.join(args.outdir, path.name))
                    print(f'  {path.name} => {args.outdir}')
    except BuildError as e:
        print(f'error: {e}', file=sys.stderr)
        return 1
    return 0


if __name__ == '__main__':
    sys.exit(main())
