import io
import unittest

from rootgen.flags import (
    SimpleFlag,
    flag_enabled,
    merge_flags,
    parse_flag,
    rust_const,
    simple_flags_to_rust_writer,
)


class TestFlagSerializer(unittest.TestCase):
    def test_value_kinds(self):
        self.assertEqual(rust_const(SimpleFlag("KernelPrinting", True)), "pub const KernelPrinting: bool = true;")
        self.assertEqual(rust_const(SimpleFlag("KernelDebugBuild", False)), "pub const KernelDebugBuild: bool = false;")
        self.assertEqual(rust_const(SimpleFlag("KernelNumDomains", 16)), "pub const KernelNumDomains: isize = 16;")
        self.assertEqual(rust_const(SimpleFlag("KernelArch", "x86")), "pub const KernelArch: &'static str = \"x86\";")

    def test_strings_are_escaped(self):
        line = rust_const(SimpleFlag("Odd", 'a"b\\c\n'))
        self.assertEqual(line, "pub const Odd: &'static str = \"a\\\"b\\\\c\\n\";")

    def test_unsupported_value_is_a_type_error(self):
        with self.assertRaises(TypeError):
            rust_const(SimpleFlag("Bad", 1.5))  # type: ignore[arg-type]

    def test_writer_indents_and_keeps_order(self):
        buf = io.StringIO()
        flags = [SimpleFlag("B", 2), SimpleFlag("A", True)]
        simple_flags_to_rust_writer(flags, buf, 4)
        self.assertEqual(
            buf.getvalue(),
            "    pub const B: isize = 2;\n    pub const A: bool = true;\n",
        )

    def test_writer_with_no_flags_writes_nothing(self):
        buf = io.StringIO()
        simple_flags_to_rust_writer([], buf, 4)
        self.assertEqual(buf.getvalue(), "")


class TestFlagParsing(unittest.TestCase):
    def test_parse_flag_values(self):
        self.assertEqual(parse_flag("KernelPrinting=true"), SimpleFlag("KernelPrinting", True))
        self.assertEqual(parse_flag("KernelPrinting=OFF"), SimpleFlag("KernelPrinting", False))
        self.assertEqual(parse_flag("test=ON"), SimpleFlag("test", True))
        self.assertEqual(parse_flag("alloc= on "), SimpleFlag("alloc", True))
        self.assertEqual(parse_flag("alloc=off"), SimpleFlag("alloc", False))
        self.assertEqual(parse_flag("KernelArch=online"), SimpleFlag("KernelArch", "online"))
        self.assertEqual(parse_flag("KernelDebugBuild=False"), SimpleFlag("KernelDebugBuild", False))
        self.assertEqual(parse_flag("KernelNumDomains=1"), SimpleFlag("KernelNumDomains", 1))
        self.assertEqual(parse_flag("KernelMaxPrio=0xff"), SimpleFlag("KernelMaxPrio", 255))
        self.assertEqual(parse_flag("KernelArch=x86_64"), SimpleFlag("KernelArch", "x86_64"))
        self.assertEqual(parse_flag("Quoted='1'"), SimpleFlag("Quoted", "1"))
        self.assertEqual(parse_flag("Eq=a=b"), SimpleFlag("Eq", "a=b"))

    def test_parse_flag_rejects_bad_text(self):
        for text in ("KernelPrinting", "=1", "  =true"):
            with self.assertRaises(ValueError, msg=text):
                parse_flag(text)

    def test_flag_enabled(self):
        flags = [SimpleFlag("alloc", True), SimpleFlag("test", 0), SimpleFlag("KernelPrinting", "")]
        self.assertTrue(flag_enabled(flags, "alloc"))
        self.assertFalse(flag_enabled(flags, "test"))
        self.assertFalse(flag_enabled(flags, "KernelPrinting"))
        self.assertFalse(flag_enabled(flags, "missing"))

    def test_merge_flags_replaces_in_place(self):
        base = [SimpleFlag("A", 1), SimpleFlag("B", 2)]
        merged = merge_flags(base, [SimpleFlag("A", 9), SimpleFlag("C", True)])
        self.assertEqual(merged, [SimpleFlag("A", 9), SimpleFlag("B", 2), SimpleFlag("C", True)])
        self.assertEqual(base, [SimpleFlag("A", 1), SimpleFlag("B", 2)])


if __name__ == "__main__":
    unittest.main()
