"""
Per-target project objects.

Every EmissionTarget becomes a native target with its compile phase, build
configurations and product file reference. Identifiers of a target's objects
are derived from its product identifier, which in turn comes from the
(file type, cargo file name) pair, so targets never share identifiers even
when a bin and a staticlib have the same name.
"""

from __future__ import annotations

from collections import OrderedDict
from dataclasses import dataclass
from typing import Any, Dict

from crate2xcode.ids import IdAllocator
from crate2xcode.objects import ObjectGraph, PBXRef
from crate2xcode.targets import EmissionTarget

BUILD_ACTION_MASK = "2147483647"
CONFIGURATION_NAMES = ("Release", "Debug")


@dataclass(frozen=True)
class SharedRefs:
    """Project-wide objects every target refers to."""
    manifest: PBXRef
    build_rule: PBXRef
    merge_phase: PBXRef


@dataclass(frozen=True)
class TargetCluster:
    target: PBXRef
    product: PBXRef


def target_build_settings(target: EmissionTarget) -> Dict[str, Any]:
    """Build settings shared by the Release and Debug configurations of a target."""
    settings: Dict[str, Any] = OrderedDict([
        ("PRODUCT_NAME", target.product_name),
        ("CARGO_XCODE_CARGO_FILE_NAME", target.cargo_file_name),
        ("CARGO_XCODE_CARGO_DEP_FILE_NAME", target.dep_file_name),
        ("SUPPORTED_PLATFORMS", " ".join(target.supported_platforms)),
    ])
    if target.skip_install:
        settings["SKIP_INSTALL"] = "YES"
        settings["INSTALL_GROUP"] = ""
        settings["INSTALL_MODE_FLAG"] = ""
        settings["INSTALL_OWNER"] = ""
    if target.compatibility_version is not None:
        settings["DYLIB_COMPATIBILITY_VERSION"] = target.compatibility_version
    return settings


def add_configuration_list(
    graph: ObjectGraph,
    list_id: str,
    config_ids: Dict[str, str],
    settings: Dict[str, Dict[str, Any]],
    comment: str,
) -> PBXRef:
    """
    Add an XCConfigurationList with its Release and Debug configurations.

    Args:
        graph: Object graph to add to
        list_id: Identifier of the configuration list
        config_ids: Identifier per configuration name
        settings: Build settings per configuration name
        comment: Annotation for the list and its configurations
    """
    configs = []
    for name in CONFIGURATION_NAMES:
        graph.add(
            config_ids[name],
            "XCBuildConfiguration",
            comment=name,
            buildSettings=settings[name],
            name=name,
        )
        configs.append(PBXRef(config_ids[name], name))

    return graph.add(
        list_id,
        "XCConfigurationList",
        comment=comment,
        buildConfigurations=configs,
        defaultConfigurationIsVisible="0",
        defaultConfigurationName="Release",
    )


def build_target_cluster(
    graph: ObjectGraph,
    target: EmissionTarget,
    make_id: IdAllocator,
    shared: SharedRefs,
) -> TargetCluster:
    """
    Add all objects for one Xcode product to the graph.

    Args:
        graph: Object graph of the project being generated
        target: The product to add
        make_id: Identifier allocator of the package
        shared: Manifest reference, build rule and lipo phase of the project

    Returns:
        References to the native target and its product file
    """
    prod_id = make_id(target.file_type, target.cargo_file_name)
    target_id = make_id(target.file_type, prod_id)
    conf_list_id = make_id("<config-list>", prod_id)
    conf_ids = {
        "Release": make_id("<config-release>", prod_id),
        "Debug": make_id("<config-debug>", prod_id),
    }
    compile_phase_id = make_id("<cargo>", prod_id)
    manifest_build_file_id = make_id("<cargo-toml>", prod_id)

    # Product path relative to TARGET_BUILD_DIR; a `path` is written by Xcode but not read back
    product = graph.add(
        prod_id,
        "PBXFileReference",
        comment=target.xcode_file_name,
        explicitFileType=target.file_type,
        includeInIndex="0",
        name=target.xcode_file_name,
        sourceTree="TARGET_BUILD_DIR",
    )

    manifest_build_file = graph.add(
        manifest_build_file_id,
        "PBXBuildFile",
        comment=f"{shared.manifest.comment} in Sources",
        fileRef=shared.manifest,
        # Xcode passes COMPILER_FLAGS to the build rule as OTHER_INPUT_FILE_FLAGS
        settings=OrderedDict([("COMPILER_FLAGS", target.compiler_flags)]),
    )

    compile_phase = graph.add(
        compile_phase_id,
        "PBXSourcesBuildPhase",
        comment="Sources",
        buildActionMask=BUILD_ACTION_MASK,
        files=[manifest_build_file],
        runOnlyForDeploymentPostprocessing="0",
    )

    settings = target_build_settings(target)
    conf_list = add_configuration_list(
        graph,
        conf_list_id,
        conf_ids,
        {name: OrderedDict(settings) for name in CONFIGURATION_NAMES},
        comment=f"Build configuration list for PBXNativeTarget \"{target.display_name}\"",
    )

    native_target = graph.add(
        target_id,
        "PBXNativeTarget",
        comment=target.display_name,
        buildConfigurationList=conf_list,
        buildPhases=[compile_phase, shared.merge_phase],
        buildRules=[shared.build_rule],
        dependencies=[],
        name=target.display_name,
        productName=target.xcode_file_name,
        productReference=product,
        productType=target.product_type,
    )

    return TargetCluster(target=native_target, product=product)
