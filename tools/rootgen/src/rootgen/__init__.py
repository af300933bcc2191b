"""Generator for seL4 root tasks written in Rust."""

from .arch import ARCH_TABLE, Arch, ArchSpec, arch_spec, parse_arch
from .config import TargetSpec, load_target
from .errors import ConfigError, GenerateError, RootGenError
from .flags import SimpleFlag, parse_flag, simple_flags_to_rust_writer
from .generator import Generator, generate_root_task

__version__ = "0.1.0"

__all__ = [
    "ARCH_TABLE",
    "Arch",
    "ArchSpec",
    "ConfigError",
    "GenerateError",
    "Generator",
    "RootGenError",
    "SimpleFlag",
    "TargetSpec",
    "arch_spec",
    "generate_root_task",
    "load_target",
    "parse_arch",
    "parse_flag",
    "simple_flags_to_rust_writer",
]
