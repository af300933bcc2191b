"""
Architecture table for the root task generator.

Each supported CPU family maps to the names of the ``seL4_UserContext``
fields that hold the stack pointer and program counter, and to the raw
entry trampoline that is appended to the generated program.
"""

from __future__ import annotations

import enum
from dataclasses import dataclass
from pathlib import Path
from typing import Dict

ASM_DIR = Path(__file__).resolve().parent / "asm"


class Arch(enum.Enum):
    X86 = "x86"
    X86_64 = "x86_64"
    ARMV7 = "armv7"
    AARCH64 = "aarch64"


@dataclass(frozen=True)
class ArchSpec:
    arch: Arch
    sp_field: str
    pc_field: str
    asm_file: str

    @property
    def trampoline(self) -> str:
        return _load_trampoline(self.asm_file)


ARCH_TABLE: Dict[Arch, ArchSpec] = {
    Arch.X86: ArchSpec(Arch.X86, sp_field="esp", pc_field="eip", asm_file="x86.s"),
    Arch.X86_64: ArchSpec(Arch.X86_64, sp_field="rsp", pc_field="rip", asm_file="x86_64.s"),
    Arch.ARMV7: ArchSpec(Arch.ARMV7, sp_field="sp", pc_field="pc", asm_file="arm.s"),
    Arch.AARCH64: ArchSpec(Arch.AARCH64, sp_field="sp", pc_field="pc", asm_file="aarch64.s"),
}

_ALIASES: Dict[str, Arch] = {
    "x86": Arch.X86,
    "ia32": Arch.X86,
    "x86_64": Arch.X86_64,
    "x64": Arch.X86_64,
    "armv7": Arch.ARMV7,
    "arm": Arch.ARMV7,
    "aarch64": Arch.AARCH64,
    "arm64": Arch.AARCH64,
}

_TRAMPOLINES: Dict[str, str] = {}


def _check_table() -> None:
    missing = [a.name for a in Arch if a not in ARCH_TABLE]
    if missing:
        raise RuntimeError(f"architecture table has no entry for: {', '.join(missing)}")
    for arch, spec in ARCH_TABLE.items():
        if spec.arch is not arch:
            raise RuntimeError(f"architecture table entry for {arch.name} describes {spec.arch.name}")


def _load_trampoline(name: str) -> str:
    # Bytes in, text out: the blob must reach the output without newline translation.
    if name not in _TRAMPOLINES:
        _TRAMPOLINES[name] = (ASM_DIR / name).read_bytes().decode("utf-8")
    return _TRAMPOLINES[name]


def arch_spec(arch: Arch) -> ArchSpec:
    return ARCH_TABLE[arch]


def parse_arch(text: str) -> Arch:
    """Resolve an architecture name such as ``x86_64`` or ``arm64``.

    Raises ``ValueError`` for names outside the table.
    """
    key = text.strip().lower()
    if key not in _ALIASES:
        known = ", ".join(a.value for a in Arch)
        raise ValueError(f"unknown architecture {text!r} (expected one of: {known})")
    return _ALIASES[key]


_check_table()
