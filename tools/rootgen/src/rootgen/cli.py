"""
rootgen: generate the Rust root task for an seL4 application.

The target comes from a manifest (``--target``), from options, or both;
options win. Output goes to stdout unless ``--out`` names a file.
"""

from __future__ import annotations

import argparse
import os
import sys
from pathlib import Path
from typing import List, Optional, Sequence

from .arch import ARCH_TABLE, parse_arch
from .config import TargetSpec, load_target, require_complete
from .errors import ConfigError, RootGenError
from .flags import SimpleFlag, merge_flags, parse_flag
from .generator import Generator, generate_root_task

PROG = "rootgen"


def _build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(prog=PROG, description="Generate an seL4 root task in Rust.")
    parser.add_argument("--target", default=None, help="Target manifest (YAML subset).")
    parser.add_argument("--arch", default=None, help="Target architecture (overrides the manifest).")
    parser.add_argument("--module", default=None, help="Task crate name (overrides the manifest).")
    parser.add_argument(
        "--flag",
        action="append",
        default=[],
        metavar="NAME=VALUE",
        help="Kernel build flag; replaces a manifest flag of the same name.",
    )
    parser.add_argument("--out", default="-", help="Output path, or '-' for stdout (default).")
    parser.add_argument(
        "--check",
        action="store_true",
        help="Do not write; exit 1 if --out is missing or differs from the generated text.",
    )
    parser.add_argument("--verbose", action="store_true", help="Report each written or checked file.")
    parser.add_argument("--list-arches", action="store_true", help="List architectures and exit.")
    return parser


def _resolve_target(args: argparse.Namespace) -> TargetSpec:
    sources: List[str] = []
    spec = TargetSpec()
    if args.target:
        spec = load_target(Path(args.target))
        sources.append(args.target)

    if args.arch:
        try:
            spec.arch = parse_arch(args.arch)
        except ValueError as exc:
            raise ConfigError(f"--arch: {exc}") from exc
    if args.module:
        spec.module = args.module
    sources.append("command line")

    overrides: List[SimpleFlag] = []
    for text in args.flag:
        try:
            overrides.append(parse_flag(text))
        except ValueError as exc:
            raise ConfigError(f"--flag: {exc}") from exc
    spec.flags = merge_flags(spec.flags, overrides)
    return require_complete(spec, sources=sources)


def _list_arches() -> None:
    for arch, spec in ARCH_TABLE.items():
        print(f"{arch.value} {spec.sp_field} {spec.pc_field}")


def _check(out_path: Path, text: str) -> bool:
    if not out_path.exists():
        print(f"{PROG}: stale: {out_path.as_posix()} does not exist", file=sys.stderr)
        return False
    if out_path.read_bytes() != text.encode("utf-8"):
        print(f"{PROG}: stale: {out_path.as_posix()} differs from generated output", file=sys.stderr)
        return False
    return True


def run(args: argparse.Namespace) -> int:
    if args.list_arches:
        _list_arches()
        return 0

    spec = _resolve_target(args)
    summary = f"({spec.arch.value}, {len(spec.flags)} flags)"

    if args.check:
        if args.out == "-":
            raise ConfigError("--check needs --out PATH")
        out_path = Path(args.out)
        if not _check(out_path, generate_root_task(spec.arch, spec.module, spec.flags)):
            return 1
        if args.verbose:
            print(f"{PROG}: up to date {out_path.as_posix()} {summary}", file=sys.stderr)
        return 0

    if args.out == "-":
        Generator(sys.stdout, spec.module, spec.arch, spec.flags).generate()
        return 0

    out_path = Path(args.out)
    # Generate next to the target and swap it in, so a failed run never
    # leaves a truncated file behind.
    tmp_path = out_path.with_name(out_path.name + ".tmp")
    try:
        out_path.parent.mkdir(parents=True, exist_ok=True)
        handle = tmp_path.open("w", encoding="utf-8", newline="\n")
    except OSError as exc:
        raise RootGenError(f"cannot write {out_path.as_posix()}: {exc.strerror or exc}") from exc
    try:
        with handle:
            Generator(handle, spec.module, spec.arch, spec.flags).generate()
        try:
            os.replace(tmp_path, out_path)
        except OSError as exc:
            raise RootGenError(f"cannot replace {out_path.as_posix()}: {exc.strerror or exc}") from exc
    except BaseException:
        tmp_path.unlink(missing_ok=True)
        raise
    if args.verbose:
        print(f"{PROG}: wrote {out_path.as_posix()} {summary}", file=sys.stderr)
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    args = _build_parser().parse_args(list(argv) if argv is not None else None)
    try:
        return run(args)
    except RootGenError as exc:
        print(f"{PROG}: ERROR: {exc}", file=sys.stderr)
        return 2


if __name__ == "__main__":
    raise SystemExit(main())
