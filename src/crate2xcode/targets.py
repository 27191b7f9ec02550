"""
Mapping of cargo targets to Xcode products.

Each (target, kind) pair that Xcode can build becomes one EmissionTarget,
which carries every name and setting the project generator needs for it.
"""

from __future__ import annotations

from dataclasses import dataclass
from pathlib import PurePosixPath
from typing import Iterable, List, Optional, Tuple

from crate2xcode.packages import CrateTarget

EXECUTABLE_PRODUCT_TYPE = "com.apple.product-type.tool"
DYLIB_PRODUCT_TYPE = "com.apple.product-type.library.dynamic"
STATIC_LIB_PRODUCT_TYPE = "com.apple.product-type.library.static"

EXECUTABLE_FILE_TYPE = "compiled.mach-o.executable"
DYLIB_FILE_TYPE = "compiled.mach-o.dylib"
STATIC_LIB_FILE_TYPE = "archive.ar"

DESKTOP_PLATFORMS = ("macosx",)
STATIC_LIB_PLATFORMS = ("macosx", "iphonesimulator", "iphoneos", "appletvsimulator", "appletvos")


@dataclass(frozen=True)
class EmissionTarget:
    """One Xcode product built from one kind of a cargo target."""
    kind: str
    base_name: str
    cargo_file_name: str
    xcode_file_name: str
    product_name: str
    file_type: str
    product_type: str
    compiler_flags: str
    supported_platforms: Tuple[str, ...]
    skip_install: bool
    compatibility_version: Optional[str] = None

    @property
    def dep_file_name(self) -> str:
        """Name of the dep-info file cargo writes next to its output."""
        return PurePosixPath(self.cargo_file_name).with_suffix(".d").name

    @property
    def display_name(self) -> str:
        return f"{self.base_name}-{self.kind}"

    @property
    def is_static_lib(self) -> bool:
        return self.product_type == STATIC_LIB_PRODUCT_TYPE


def _lib_stem(name: str) -> str:
    return name.replace("-", "_")


def _classify(
    target: CrateTarget,
    kind: str,
    base_name: str,
    major_version: int,
) -> Optional[EmissionTarget]:
    if kind == "bin":
        flags = f"--bin '{target.name}'"
        if target.required_features:
            flags += f" --features '{','.join(target.required_features)}'"
        return EmissionTarget(
            kind=kind,
            base_name=base_name,
            cargo_file_name=target.name,
            xcode_file_name=base_name,
            product_name=base_name,
            file_type=EXECUTABLE_FILE_TYPE,
            product_type=EXECUTABLE_PRODUCT_TYPE,
            compiler_flags=flags,
            supported_platforms=DESKTOP_PLATFORMS,
            skip_install=False,
        )

    if kind == "cdylib":
        return EmissionTarget(
            kind=kind,
            base_name=base_name,
            cargo_file_name=f"lib{_lib_stem(target.name)}.dylib",
            xcode_file_name=f"{base_name}.dylib",
            product_name=base_name,
            file_type=DYLIB_FILE_TYPE,
            product_type=DYLIB_PRODUCT_TYPE,
            compiler_flags="--lib",
            supported_platforms=DESKTOP_PLATFORMS,
            skip_install=False,
            compatibility_version=str(major_version) if major_version != 1 else None,
        )

    if kind == "staticlib":
        # The _static suffix avoids a product name clash in Xcode when a
        # dylib with the same base name exists.
        return EmissionTarget(
            kind=kind,
            base_name=base_name,
            cargo_file_name=f"lib{_lib_stem(target.name)}.a",
            xcode_file_name=f"lib{base_name}_static.a",
            product_name=f"{base_name}_static",
            file_type=STATIC_LIB_FILE_TYPE,
            product_type=STATIC_LIB_PRODUCT_TYPE,
            compiler_flags="--lib",
            supported_platforms=STATIC_LIB_PLATFORMS,
            # Xcode tries to chmod it when archiving, even though it isn't part of the archive
            skip_install=True,
        )

    return None


def classify_targets(
    targets: Iterable[CrateTarget],
    major_version: int,
    base_name: Optional[str] = None,
) -> List[EmissionTarget]:
    """
    Build the list of Xcode products for a package's targets.

    Args:
        targets: Cargo targets in discovery order
        major_version: Package major version, used for dylib compatibility version
        base_name: Overrides the target name in Xcode-visible names (custom project name)

    Returns:
        One EmissionTarget per bin, cdylib or staticlib kind, in target order.
        Other kinds (lib, rlib, test, example, ...) are skipped.
    """
    result: List[EmissionTarget] = []
    for target in targets:
        name = base_name or target.name
        for kind in target.kinds:
            emission = _classify(target, kind, name, major_version)
            if emission is not None:
                result.append(emission)
    return result
