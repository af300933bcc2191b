"""
Target manifests.

A manifest names the architecture, the task module and the kernel flags
for one root task::

    target:
      arch: x86_64
      module: demo_task
      flags:
        KernelPrinting: true
        KernelNumDomains: 1

Only the YAML subset the other generator tools in this repository read is
accepted: 2-space indentation, mappings, ``- `` lists and plain scalars.
"""

from __future__ import annotations

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any, Dict, List, Optional, Sequence, Tuple, Union

from .arch import Arch, parse_arch
from .errors import ConfigError
from .flags import SimpleFlag, parse_scalar

Container = Union[Dict[str, Any], List[Any]]


@dataclass
class TargetSpec:
    arch: Optional[Arch] = None
    module: Optional[str] = None
    flags: List[SimpleFlag] = field(default_factory=list)


def _strip_comment_line(line: str) -> str:
    if line.lstrip().startswith("#"):
        return ""
    return line.rstrip("\r\n")


def _indent_of(line: str) -> int:
    return len(line) - len(line.lstrip(" "))


def _split_key_value(line: str, where: str) -> Tuple[str, Optional[str]]:
    if ":" not in line:
        raise ConfigError(f"{where}: expected 'key: value', got {line!r}")
    key, rest = line.split(":", 1)
    key = key.strip()
    if key == "":
        raise ConfigError(f"{where}: empty key")
    rest = rest.strip()
    return key, rest if rest != "" else None


def parse_yaml_subset(text: str, *, source: str = "<string>") -> Dict[str, Any]:
    significant: List[Tuple[int, str]] = []
    for number, raw in enumerate(text.splitlines(), start=1):
        cleaned = _strip_comment_line(raw)
        if cleaned.strip() != "":
            significant.append((number, cleaned))

    root: Dict[str, Any] = {}
    stack: List[Tuple[int, Container]] = [(0, root)]

    for pos, (number, line) in enumerate(significant):
        where = f"{source}:{number}"
        indent = _indent_of(line)
        if indent % 2 != 0:
            raise ConfigError(f"{where}: indentation must be a multiple of 2 spaces")
        while stack[-1][0] > indent:
            stack.pop()
        if stack[-1][0] != indent:
            raise ConfigError(f"{where}: bad indentation")
        container = stack[-1][1]
        content = line.strip()

        if content.startswith("- ") or content == "-":
            if not isinstance(container, list):
                raise ConfigError(f"{where}: list item in a mapping")
            item = content[1:].strip()
            if item == "":
                raise ConfigError(f"{where}: nested list items are not supported")
            container.append(parse_scalar(item))
            continue

        if not isinstance(container, dict):
            raise ConfigError(f"{where}: mapping entry in a list")
        key, rest = _split_key_value(content, where)
        if key in container:
            raise ConfigError(f"{where}: duplicate key {key!r}")
        if rest is not None:
            container[key] = parse_scalar(rest)
            continue

        following = significant[pos + 1][1] if pos + 1 < len(significant) else None
        if following is None or _indent_of(following) <= indent:
            container[key] = None
            continue
        child: Container = [] if following.strip().startswith("-") else {}
        container[key] = child
        stack.append((_indent_of(following), child))

    return root


def _flags_from(raw: Any, where: str) -> List[SimpleFlag]:
    if raw is None:
        return []
    if not isinstance(raw, dict):
        raise ConfigError(f"{where}: flags must be a mapping of NAME: VALUE")
    flags = []
    for name, value in raw.items():
        if value is None:
            raise ConfigError(f"{where}: flag {name!r} has no value")
        if not isinstance(value, (bool, int, str)):
            raise ConfigError(f"{where}: flag {name!r} must be a bool, int or string")
        flags.append(SimpleFlag(name, value))
    return flags


def target_from_dict(data: Dict[str, Any], *, source: str = "<string>") -> TargetSpec:
    target = data.get("target")
    if not isinstance(target, dict):
        raise ConfigError(f"{source}: missing top-level 'target' mapping")
    for key in ("arch", "module"):
        if target.get(key) in (None, ""):
            raise ConfigError(f"{source}: target.{key} is required")

    try:
        arch = parse_arch(str(target["arch"]))
    except ValueError as exc:
        raise ConfigError(f"{source}: target.arch: {exc}") from exc

    return TargetSpec(
        arch=arch,
        module=str(target["module"]),
        flags=_flags_from(target.get("flags"), f"{source}: target.flags"),
    )


def load_target(path: Path) -> TargetSpec:
    try:
        text = path.read_text(encoding="utf-8")
    except OSError as exc:
        raise ConfigError(f"cannot read {path.as_posix()}: {exc.strerror or exc}") from exc
    source = path.as_posix()
    return target_from_dict(parse_yaml_subset(text, source=source), source=source)


def require_complete(spec: TargetSpec, *, sources: Sequence[str] = ()) -> TargetSpec:
    missing = []
    if spec.arch is None:
        missing.append("arch")
    if not spec.module:
        missing.append("module")
    if missing:
        hint = f" (looked in: {', '.join(sources)})" if sources else ""
        raise ConfigError(f"missing {' and '.join(missing)}{hint}")
    return spec
