
import re
import unittest

from rootgen.arch import ARCH_TABLE, Arch, arch_spec, parse_arch

_RE_IMM = re.compile(r"^\$(\d+),\s*%([er]sp)$")
_PUSH_SIZE = {"pushl": 4, "popl": -4, "pushq": 8, "popq": -8}


def _stack_offsets_at_calls(blob: str):
    """Bytes below the reset stack top at each call in an x86 trampoline."""
    offsets = []
    depth = None
    for raw in blob.splitlines():
        line = raw.strip()
        if not line or line.startswith(("/*", "*", ".")):
            continue
        if ":" in line.split(None, 1)[0]:
            line = line.split(":", 1)[1].strip()
            if not line:
                continue
        op, _, operands = line.partition(" ")
        operands = operands.strip()
        if op in ("leal", "leaq") and operands.endswith(("%esp", "%rsp")):
            depth = 0
        elif op in _PUSH_SIZE:
            depth += _PUSH_SIZE[op]
        elif op in ("subl", "subq", "addl", "addq"):
            m = _RE_IMM.match(operands)
            if m:
                depth += int(m.group(1)) if op.startswith("sub") else -int(m.group(1))
        elif op == "call":
            offsets.append((operands, depth))
    return offsets


class TestArchTable(unittest.TestCase):
    def test_table_covers_every_arch(self):
        self.assertEqual(set(ARCH_TABLE), set(Arch))
        for arch in Arch:
            self.assertIs(arch_spec(arch).arch, arch)

    def test_register_fields(self):
        expected = {
            Arch.X86: ("esp", "eip"),
            Arch.X86_64: ("rsp", "rip"),
            Arch.ARMV7: ("sp", "pc"),
            Arch.AARCH64: ("sp", "pc"),
        }
        for arch, (sp, pc) in expected.items():
            spec = arch_spec(arch)
            self.assertEqual((spec.sp_field, spec.pc_field), (sp, pc), msg=arch.name)

    def test_trampolines_are_distinct_entry_points(self):
        blobs = [arch_spec(a).trampoline for a in Arch]
        self.assertEqual(len(set(blobs)), len(blobs))
        for arch, blob in zip(Arch, blobs):
            self.assertIn("_sel4_start:", blob, msg=arch.name)
            self.assertIn("__sel4_start_init_boot_info", blob, msg=arch.name)

    def test_x86_trampolines_keep_stack_aligned_at_calls(self):
        for arch in (Arch.X86, Arch.X86_64):
            calls = _stack_offsets_at_calls(arch_spec(arch).trampoline)
            self.assertEqual([name for name, _ in calls], ["__sel4_start_init_boot_info", "main"], msg=arch.name)
            for name, depth in calls:
                self.assertIsNotNone(depth, msg=f"{arch.name}: {name} called before the stack is set")
                self.assertEqual(depth % 16, 0, msg=f"{arch.name}: {name} called with {depth} bytes pushed")

    def test_x86_trampolines_reserve_an_aligned_stack(self):
        for arch in (Arch.X86, Arch.X86_64):
            blob = arch_spec(arch).trampoline
            self.assertRegex(blob, r"\.align\s+16\s*\n_stack_bottom:", msg=arch.name)

    def test_parse_arch_names_and_aliases(self):
        self.assertIs(parse_arch("x86_64"), Arch.X86_64)
        self.assertIs(parse_arch(" X64 "), Arch.X86_64)
        self.assertIs(parse_arch("ia32"), Arch.X86)
        self.assertIs(parse_arch("ARM"), Arch.ARMV7)
        self.assertIs(parse_arch("arm64"), Arch.AARCH64)
        for arch in Arch:
            self.assertIs(parse_arch(arch.value), arch)

    def test_parse_arch_rejects_unknown(self):
        with self.assertRaises(ValueError) as ctx:
            parse_arch("riscv64")
        self.assertIn("riscv64", str(ctx.exception))


if __name__ == "__main__":
    unittest.main()
