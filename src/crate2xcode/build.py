"""
Project file generation for crate2xcode.

Runs the generation pipeline for each package (classify targets, build the
object graph, serialize) and writes `<name>.xcodeproj/project.pbxproj`.
Every run rewrites the project from scratch; nothing is read back from a
previous one.
"""

from __future__ import annotations

import os
from importlib.metadata import PackageNotFoundError, version
from pathlib import Path
from typing import Dict, List, Optional, Sequence

from crate2xcode.assembler import MANIFEST_NAME, assemble_project
from crate2xcode.ids import IdAllocator
from crate2xcode.packages import Package
from crate2xcode.serializer import serialize
from crate2xcode.targets import classify_targets

PBXPROJ_FILENAME = "project.pbxproj"

try:
    GENERATOR_VERSION = version("crate2xcode")
except PackageNotFoundError:
    # Running from a source checkout
    GENERATOR_VERSION = "0.0.0"


def project_name(package: Package, custom_name: Optional[str] = None) -> str:
    return custom_name or package.name


def project_path(package: Package, output_dir: Optional[Path] = None, custom_name: Optional[str] = None) -> Path:
    """
    Location of the .xcodeproj directory for a package.

    It goes into output_dir if given, otherwise next to the package's Cargo.toml.
    """
    dirname = f"{project_name(package, custom_name)}.xcodeproj"
    if output_dir is not None:
        return Path(output_dir) / dirname
    return Path(package.manifest_path).with_name(dirname)


def manifest_reference_path(package: Package, output_dir: Optional[Path] = None) -> str:
    """Path of Cargo.toml as seen from the directory holding the .xcodeproj."""
    if output_dir is None:
        return MANIFEST_NAME
    try:
        rel = os.path.relpath(Path(package.manifest_path).resolve(), start=Path(output_dir).resolve())
    except ValueError:
        # Different drive on Windows
        return str(package.manifest_path)
    return Path(rel).as_posix()


def generate_pbxproj(
    package: Package,
    output_dir: Optional[Path] = None,
    custom_name: Optional[str] = None,
) -> str:
    """
    Generate the project.pbxproj contents for a package.

    Args:
        package: Package with its targets
        output_dir: Directory the .xcodeproj will be written to, if not the
            package directory. Affects the path of Cargo.toml in the project.
        custom_name: Project name to use instead of the package name

    Returns:
        The complete file contents. A package without bin, cdylib or
        staticlib targets gives a valid project with no targets.
    """
    targets = classify_targets(package.targets, package.version.major, custom_name)
    make_id = IdAllocator.for_package(package.id)
    graph = assemble_project(
        package,
        targets,
        make_id,
        GENERATOR_VERSION,
        manifest_path=manifest_reference_path(package, output_dir),
    )
    return serialize(graph, GENERATOR_VERSION)


def _write_atomic(path: Path, content: str) -> None:
    tmp = path.with_suffix(path.suffix + ".tmp")
    try:
        with tmp.open("w", encoding="utf-8", newline="\n") as f:
            f.write(content)
        tmp.replace(path)
    except OSError:
        if tmp.exists():
            tmp.unlink()
        raise


def write_project(
    package: Package,
    output_dir: Optional[Path] = None,
    custom_name: Optional[str] = None,
) -> Path:
    """
    Generate and write the Xcode project of a package.

    The file contents are built completely before anything is written, and
    the file is replaced in one step, so a failure leaves any previous
    project.pbxproj untouched.

    Returns:
        Path of the .xcodeproj directory

    Raises:
        OSError: If the directory can't be created or the file can't be written
    """
    content = generate_pbxproj(package, output_dir, custom_name)

    proj_path = project_path(package, output_dir, custom_name)
    proj_path.mkdir(parents=True, exist_ok=True)
    _write_atomic(proj_path / PBXPROJ_FILENAME, content)
    return proj_path


def write_projects(
    packages: Sequence[Package],
    output_dir: Optional[Path] = None,
    custom_name: Optional[str] = None,
) -> List[Path]:
    """
    Write an Xcode project for every package, printing each path written.

    Each package is generated independently with its own identifier seed.
    Stops at the first package that fails to write.

    Raises:
        RuntimeError: If two packages would be written to the same
            .xcodeproj. Nothing is written in that case.
    """
    owners: Dict[Path, Package] = {}
    for package in packages:
        path = project_path(package, output_dir, custom_name)
        if path in owners:
            raise RuntimeError(
                f"Packages {owners[path]} and {package} would both be written to {path}"
            )
        owners[path] = package

    written: List[Path] = []
    for package in packages:
        path = write_project(package, output_dir, custom_name)
        print(f"Written {path}")
        written.append(path)
    return written
