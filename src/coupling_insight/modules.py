"""Module resolution: file path -> (crate, canonical module path).

A module path is built from directory segments. Aggregator files (the crate
root ``lib.rs`` / ``main.rs`` and per-directory ``mod.rs``) contribute no
segment of their own, they *are* their directory:

    src/lib.rs                    -> ()                 rendered "crate"
    src/level/mod.rs              -> ("level",)
    src/level/enemy/spawner.rs    -> ("level", "enemy", "spawner")
    tests/integration.rs          -> ("tests", "integration")

In a Cargo workspace every member is its own crate. Paths are resolved
relative to the member directory that contains them, so
``crates/net/src/wire.rs`` is module ``("wire",)`` of crate ``net``.
"""

from __future__ import annotations

import tomllib
from dataclasses import dataclass, field
from pathlib import Path, PurePosixPath
from typing import Iterable, Sequence

from .exceptions import InvalidPathError
from .logging_config import get_logger

logger = get_logger(__name__)

DEFAULT_AGGREGATOR_FILES = ("lib.rs", "main.rs", "mod.rs")
DEFAULT_SOURCE_ROOTS = ("src",)
SOURCE_SUFFIX = ".rs"
MANIFEST_NAME = "Cargo.toml"

_CRATE_ROOT_FILES = ("lib.rs", "main.rs")


@dataclass(frozen=True)
class CrateRoot:
    """One crate of the analyzed tree.

    Attributes:
        name: Crate name as written in paths; empty for the crate at the
            analysis root
        directory: POSIX directory relative to the analysis root
        aliases: Names under which other code refers to this crate
    """

    name: str
    directory: str = ""
    aliases: frozenset[str] = field(default_factory=frozenset)

    @property
    def parts(self) -> tuple[str, ...]:
        return PurePosixPath(self.directory).parts if self.directory else ()


ROOT_CRATE = CrateRoot("")


class ModuleResolver:
    """Maps relative source paths onto (crate, module path) pairs.

    Stateless apart from its naming conventions and crate layout, so a
    single instance can be shared by every parse worker.
    """

    def __init__(
        self,
        aggregator_files: Iterable[str] = DEFAULT_AGGREGATOR_FILES,
        source_roots: Iterable[str] = DEFAULT_SOURCE_ROOTS,
        crates: Sequence[CrateRoot] = (),
    ):
        self.aggregator_files = frozenset(aggregator_files)
        self.source_roots = frozenset(source_roots)
        # Deepest directory first so nested members win over the root.
        members = {c.directory: c for c in crates}
        members.setdefault("", ROOT_CRATE)
        self.crates = sorted(members.values(), key=lambda c: (-len(c.parts), c.directory))

    def locate(self, rel_path: str) -> tuple[CrateRoot, tuple[str, ...]]:
        """Owning crate and canonical module path for ``rel_path``.

        Raises:
            InvalidPathError: If the path is absolute, escapes the root or is
                not a Rust source file.
        """
        path = PurePosixPath(rel_path)
        if path.is_absolute() or ".." in path.parts:
            raise InvalidPathError(path, "module paths are resolved from root-relative paths")
        if path.suffix != SOURCE_SUFFIX:
            raise InvalidPathError(path, f"not a {SOURCE_SUFFIX} source file")

        crate = self.crate_of(path)
        segments = list(path.parts[len(crate.parts) : -1])
        if segments and segments[0] in self.source_roots:
            segments = segments[1:]

        if path.name not in self.aggregator_files:
            segments.append(path.stem)

        return crate, tuple(_identifier(s) for s in segments)

    def resolve(self, rel_path: str) -> tuple[str, ...]:
        """Canonical module path for ``rel_path`` inside its crate."""
        return self.locate(rel_path)[1]

    def crate_of(self, path: PurePosixPath) -> CrateRoot:
        for crate in self.crates:
            if path.parts[: len(crate.parts)] == crate.parts:
                return crate
        return ROOT_CRATE

    def is_aggregator(self, rel_path: str) -> bool:
        return PurePosixPath(rel_path).name in self.aggregator_files


def _identifier(segment: str) -> str:
    # Directory names may contain dashes (e.g. "bin/my-tool.rs").
    return segment.replace("-", "_")


def is_ancestor(ancestor: tuple[str, ...], descendant: tuple[str, ...]) -> bool:
    """True if ``ancestor`` is a proper, non-root prefix of ``descendant``."""
    return 0 < len(ancestor) < len(descendant) and descendant[: len(ancestor)] == ancestor


# ── Cargo manifests ────────────────────────────────────────────────


def read_manifest(manifest: Path) -> dict:
    """Parsed ``Cargo.toml``, or an empty dict if it is missing or unreadable."""
    if not manifest.is_file():
        return {}
    try:
        with open(manifest, "rb") as f:
            return tomllib.load(f)
    except (OSError, tomllib.TOMLDecodeError) as e:
        logger.warning(f"Ignoring unreadable {manifest}: {e}")
        return {}


def manifest_names(data: dict) -> list[str]:
    """Crate names declared by a manifest: ``[package]`` then ``[lib]``."""
    names = []
    for section in ("package", "lib"):
        name = data.get(section, {}).get("name")
        if isinstance(name, str) and _identifier(name) not in names:
            names.append(_identifier(name))
    return names


def detect_crates(root: Path, paths: Iterable[str]) -> list[CrateRoot]:
    """Crates under ``root``: the root crate plus every workspace member.

    Members come from ``[workspace].members`` of the root manifest (globs
    allowed, ``exclude`` honoured) and from any directory holding a
    ``src/lib.rs`` or ``src/main.rs`` among ``paths``. The crate at the
    analysis root keeps the empty name so single-crate trees render as
    before.
    """
    root = Path(root)
    directories = set(_workspace_members(root))
    for rel_path in paths:
        parts = PurePosixPath(rel_path).parts
        if len(parts) >= 2 and parts[-2] == "src" and parts[-1] in _CRATE_ROOT_FILES:
            directories.add("/".join(parts[:-2]))
    directories.discard("")

    crates = [CrateRoot("", "", frozenset(manifest_names(read_manifest(root / MANIFEST_NAME))))]
    taken: set[str] = set()
    for directory in sorted(directories):
        names = manifest_names(read_manifest(root / directory / MANIFEST_NAME))
        name = names[0] if names else _identifier(PurePosixPath(directory).name)
        if name in taken:
            name = _identifier(directory.replace("/", "_"))
        taken.add(name)
        crates.append(CrateRoot(name, directory, frozenset([name, *names])))

    if len(crates) > 1:
        logger.info(f"Workspace with {len(crates) - 1} member crates")
    return crates


def crate_alias_map(crates: Iterable[CrateRoot]) -> dict[str, str]:
    """alias -> crate name; the first crate to claim an alias keeps it."""
    aliases: dict[str, str] = {}
    for crate in crates:
        for alias in sorted(crate.aliases):
            aliases.setdefault(alias, crate.name)
    return aliases


def _workspace_members(root: Path) -> list[str]:
    workspace = read_manifest(root / MANIFEST_NAME).get("workspace", {})
    excluded = set(_expand(root, workspace.get("exclude", [])))
    return [d for d in _expand(root, workspace.get("members", [])) if d not in excluded]


def _expand(root: Path, patterns) -> list[str]:
    directories = []
    for pattern in patterns if isinstance(patterns, list) else []:
        if not isinstance(pattern, str) or not pattern.strip("/"):
            continue
        for match in sorted(root.glob(pattern.rstrip("/"))):
            if match.is_dir():
                relative = match.relative_to(root).as_posix()
                directories.append("" if relative == "." else relative)
    return directories

