"""
Kernel build flags and their Rust serialization.

Flags arrive already collected from the kernel build configuration. They
are written out in arrival order and never re-sorted, so identical input
always serializes to identical text.
"""

from __future__ import annotations

import re
from dataclasses import dataclass
from typing import Iterable, List, Sequence, TextIO, Union

FlagValue = Union[bool, int, str]

ALLOC_FLAG = "alloc"
TEST_FLAG = "test"
DEBUG_OUTPUT_FLAG = "KernelPrinting"

_RE_INT = re.compile(r"^-?\d+$")
_RE_HEX = re.compile(r"^0x[0-9a-fA-F]+$")


@dataclass(frozen=True)
class SimpleFlag:
    name: str
    value: FlagValue


def _rust_str(text: str) -> str:
    escaped = (
        text.replace("\\", "\\\\")
        .replace('"', '\\"')
        .replace("\r", "\\r")
        .replace("\n", "\\n")
        .replace("\t", "\\t")
    )
    return f'"{escaped}"'


def rust_const(flag: SimpleFlag) -> str:
    value = flag.value
    # bool before int: bool is an int subclass.
    if isinstance(value, bool):
        return f"pub const {flag.name}: bool = {'true' if value else 'false'};"
    if isinstance(value, int):
        return f"pub const {flag.name}: isize = {value};"
    if isinstance(value, str):
        return f"pub const {flag.name}: &'static str = {_rust_str(value)};"
    raise TypeError(f"flag {flag.name}: unsupported value type {type(value).__name__}")


def simple_flags_to_rust_writer(flags: Iterable[SimpleFlag], writer: TextIO, indent: int) -> None:
    pad = " " * indent
    for flag in flags:
        writer.write(f"{pad}{rust_const(flag)}\n")


def parse_scalar(text: str) -> FlagValue:
    s = text.strip()
    lower = s.lower()
    # CMake spells booleans ON/OFF.
    if lower in ("true", "on"):
        return True
    if lower in ("false", "off"):
        return False
    if _RE_HEX.match(s):
        return int(s, 16)
    if _RE_INT.match(s):
        return int(s, 10)
    if len(s) >= 2 and s[0] == s[-1] and s[0] in "'\"":
        return s[1:-1]
    return s


def parse_flag(text: str) -> SimpleFlag:
    if "=" not in text:
        raise ValueError(f"flag {text!r} must be NAME=VALUE")
    name, value = text.split("=", 1)
    name = name.strip()
    if name == "":
        raise ValueError(f"flag {text!r} has an empty name")
    return SimpleFlag(name, parse_scalar(value))


def flag_enabled(flags: Sequence[SimpleFlag], name: str) -> bool:
    for flag in flags:
        if flag.name == name:
            return bool(flag.value)
    return False


def merge_flags(base: Sequence[SimpleFlag], overrides: Iterable[SimpleFlag]) -> List[SimpleFlag]:
    """Apply ``overrides`` to ``base``: same name replaces in place, new names append."""
    merged = list(base)
    for flag in overrides:
        for i, existing in enumerate(merged):
            if existing.name == flag.name:
                merged[i] = flag
                break
        else:
            merged.append(flag)
    return merged
