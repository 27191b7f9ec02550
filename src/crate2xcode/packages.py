"""
Package discovery for crate2xcode.

Packages and their targets come from `cargo metadata`. This module runs it
(or reads a previously saved metadata document) and turns the JSON into
typed records. Anything missing from the document is reported as a
MetadataError: cargo's output is trusted to be well-formed, so a gap is a
broken contract rather than something to work around.
"""

from __future__ import annotations

import json
import re
import subprocess
from dataclasses import dataclass, replace
from pathlib import Path
from typing import Any, Dict, Iterable, List, Optional, Tuple

EMITTED_KINDS = ("bin", "cdylib", "staticlib")

VERSION_RE = re.compile(r'^(\d+)\.(\d+)\.(\d+)(?:-([0-9A-Za-z.-]+))?(?:\+([0-9A-Za-z.-]+))?$')


class MetadataError(RuntimeError):
    """Package metadata is missing, unreadable or malformed."""


@dataclass(frozen=True)
class Version:
    major: int
    minor: int
    patch: int
    pre: str = ""
    build: str = ""

    @classmethod
    def parse(cls, text: str) -> Version:
        m = VERSION_RE.match(text.strip())
        if not m:
            raise MetadataError(f"Invalid package version: {text!r}")
        return cls(int(m.group(1)), int(m.group(2)), int(m.group(3)), m.group(4) or "", m.group(5) or "")

    def __str__(self) -> str:
        base = f"{self.major}.{self.minor}.{self.patch}"
        if self.pre:
            base += f"-{self.pre}"
        if self.build:
            base += f"+{self.build}"
        return base


@dataclass(frozen=True)
class CrateTarget:
    """A build target declared in a package manifest."""
    name: str
    kinds: Tuple[str, ...]
    required_features: Tuple[str, ...] = ()

    def is_relevant(self) -> bool:
        """True if at least one of the target's kinds becomes an Xcode product."""
        return any(kind in EMITTED_KINDS for kind in self.kinds)


@dataclass(frozen=True)
class Package:
    """A package as reported by cargo metadata."""
    id: str
    name: str
    version: Version
    manifest_path: Path
    targets: Tuple[CrateTarget, ...]

    def __str__(self) -> str:
        return f"{self.name} {self.version}"


def _require(entry: Dict[str, Any], key: str, what: str) -> Any:
    if not isinstance(entry, dict) or key not in entry:
        raise MetadataError(f"Missing '{key}' in {what}")
    return entry[key]


def _string_list(value: Any, what: str) -> Tuple[str, ...]:
    if not isinstance(value, list) or not all(isinstance(v, str) for v in value):
        raise MetadataError(f"Expected a list of strings for {what}")
    return tuple(value)


def _parse_target(entry: Dict[str, Any], package_name: str) -> CrateTarget:
    name = _require(entry, "name", f"target of package '{package_name}'")
    what = f"target '{name}' of package '{package_name}'"
    kinds = _string_list(_require(entry, "kind", what), f"'kind' of {what}")
    features = _string_list(entry.get("required-features", []), f"'required-features' of {what}")
    return CrateTarget(name=name, kinds=kinds, required_features=features)


def _parse_package(entry: Dict[str, Any]) -> Package:
    name = _require(entry, "name", "package entry")
    what = f"package '{name}'"

    targets = _require(entry, "targets", what)
    if not isinstance(targets, list):
        raise MetadataError(f"Expected a list of targets for {what}")

    return Package(
        id=_require(entry, "id", what),
        name=name,
        version=Version.parse(_require(entry, "version", what)),
        manifest_path=Path(_require(entry, "manifest_path", what)),
        targets=tuple(_parse_target(t, name) for t in targets),
    )


def parse_metadata(document: Dict[str, Any]) -> List[Package]:
    """
    Convert a `cargo metadata --format-version 1` document into packages.

    Args:
        document: Decoded JSON document

    Returns:
        Packages in the order cargo listed them

    Raises:
        MetadataError: If a required field is missing or has the wrong shape
    """
    packages = _require(document, "packages", "metadata document")
    if not isinstance(packages, list):
        raise MetadataError("Expected 'packages' to be a list")
    return [_parse_package(p) for p in packages]


def read_metadata_file(path: Path) -> List[Package]:
    """Parse a metadata document previously saved from `cargo metadata`."""
    try:
        with Path(path).open("r", encoding="utf-8") as f:
            document = json.load(f)
    except json.JSONDecodeError as e:
        raise MetadataError(f"Invalid metadata JSON in {path}: {e}") from e
    return parse_metadata(document)


def load_metadata(manifest_path: Optional[Path] = None, cargo: str = "cargo") -> List[Package]:
    """
    Run `cargo metadata` and parse its output.

    Args:
        manifest_path: Cargo.toml to query. Defaults to cargo's own lookup
            from the current directory.
        cargo: Name or path of the cargo executable

    Returns:
        Workspace member packages (dependencies are not listed)

    Raises:
        MetadataError: If cargo can't be run, fails, or prints bad JSON
    """
    cmd = [cargo, "metadata", "--format-version", "1", "--no-deps"]
    if manifest_path is not None:
        cmd += ["--manifest-path", str(manifest_path)]

    try:
        result = subprocess.run(cmd, check=True, capture_output=True, text=True)
    except FileNotFoundError as e:
        raise MetadataError(f"Could not run '{cargo}': {e}") from e
    except subprocess.CalledProcessError as e:
        raise MetadataError(f"'{' '.join(cmd)}' failed:\n{e.stderr.strip()}") from e

    try:
        document = json.loads(result.stdout)
    except json.JSONDecodeError as e:
        raise MetadataError(f"cargo metadata printed invalid JSON: {e}") from e
    return parse_metadata(document)


def eligible_packages(packages: Iterable[Package]) -> List[Package]:
    """
    Keep only targets that produce Xcode products, and only packages that
    still have some.

    A package with no eligible target is dropped without error; whether an
    empty result matters is up to the caller.
    """
    result: List[Package] = []
    for package in packages:
        targets = tuple(t for t in package.targets if t.is_relevant())
        if targets:
            result.append(replace(package, targets=targets))
    return result
