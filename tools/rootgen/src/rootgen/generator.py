"""
Root task generator.

Emits a freestanding seL4 root task in Rust for one architecture. The
output is written in a single pass, section by section:

- header, feature directives, crate imports and the optional allocator
- runtime hooks (boot info entry, termination, panic, eh_personality, oom)
- the ``sel4_config`` module holding the kernel build flags
- the boot sequence: untyped search, TCB retype, configure, register
  setup, resume and the root thread's yield loop
- the architecture's entry trampoline as a raw ``global_asm!`` block

Identical inputs always produce identical text.
"""

from __future__ import annotations

import io
from typing import List, Sequence, TextIO

from . import templates
from .arch import Arch, arch_spec
from .errors import GenerateError
from .flags import (
    ALLOC_FLAG,
    DEBUG_OUTPUT_FLAG,
    TEST_FLAG,
    SimpleFlag,
    flag_enabled,
    simple_flags_to_rust_writer,
)

CONFIG_INDENT = 4
MIN_RAW_HASHES = 3


def raw_string_hashes(text: str) -> int:
    """Number of ``#`` needed so ``r#..#"text"#..#`` cannot end early."""
    longest = 0
    start = text.find('"')
    while start != -1:
        end = start + 1
        while end < len(text) and text[end] == "#":
            end += 1
        longest = max(longest, end - start - 1)
        start = text.find('"', start + 1)
    return max(MIN_RAW_HASHES, longest + 1)


def rust_raw_string(text: str) -> str:
    hashes = "#" * raw_string_hashes(text)
    return f'r{hashes}"{text}"{hashes}'


class Generator:
    def __init__(
        self,
        writer: TextIO,
        package_module_name: str,
        arch: Arch,
        flags: Sequence[SimpleFlag],
    ) -> None:
        self.writer = writer
        self.package_module_name = package_module_name
        self.arch = arch
        self.flags = flags
        # Resolved up front so a missing table entry or asset fails before any output.
        self.spec = arch_spec(arch)
        self.trampoline = self.spec.trampoline

        self.alloc = flag_enabled(flags, ALLOC_FLAG)
        self.test = flag_enabled(flags, TEST_FLAG)
        self.debug_output = flag_enabled(flags, DEBUG_OUTPUT_FLAG)

    def generate(self) -> None:
        try:
            self.generate_preamble()
            self.generate_runtime_hooks()
            self.generate_config_block()
            self.generate_boot_sequence()
            self.generate_trampoline()
        except OSError as exc:
            raise GenerateError(f"failed to write root task for {self.arch.value}: {exc}") from exc

    def _write(self, text: str) -> None:
        self.writer.write(text)

    def _write_lines(self, lines: List[str]) -> None:
        self._write("\n".join(lines) + "\n")

    def generate_preamble(self) -> None:
        self._write(templates.HEADER)
        self._write_lines(templates.feature_lines(self.alloc))
        self._write("\n")
        self._write_lines(
            templates.crate_lines(self.package_module_name, alloc=self.alloc, test=self.test)
        )
        self._write(templates.USES)
        if self.alloc:
            self._write(templates.ALLOCATOR)

    def generate_runtime_hooks(self) -> None:
        self._write(templates.ENTRY_HOOK)
        self._write(templates.TERMINATION_HOOK)
        self._write_lines(templates.panic_hook_lines(self.debug_output))
        self._write_lines(templates.eh_personality_hook_lines(self.debug_output))
        self._write_lines(templates.oom_hook_lines(self.debug_output))

    def generate_config_block(self) -> None:
        self._write(templates.CONFIG_OPEN)
        simple_flags_to_rust_writer(self.flags, self.writer, CONFIG_INDENT)
        self._write(templates.CONFIG_CLOSE)

    def generate_boot_sequence(self) -> None:
        self._write(templates.GET_UNTYPED)
        self._write(templates.MAIN_SETUP)
        self._write_lines(
            templates.register_lines(
                self.package_module_name,
                self.spec.pc_field,
                self.spec.sp_field,
                test=self.test,
            )
        )
        self._write(templates.MAIN_START)

    def generate_trampoline(self) -> None:
        self._write(f"\nglobal_asm!({rust_raw_string(self.trampoline)});\n")


def generate_root_task(arch: Arch, package_module_name: str, flags: Sequence[SimpleFlag]) -> str:
    buf = io.StringIO()
    Generator(buf, package_module_name, arch, flags).generate()
    return buf.getvalue()
