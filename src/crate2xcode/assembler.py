"""
Whole-project assembly.

Combines the per-target object clusters with the objects every project has
once: groups, the cargo build rule, the lipo phase, the project-level
configurations and the PBXProject root object.
"""

from __future__ import annotations

from collections import OrderedDict
from typing import Any, Dict, List, Optional, Sequence

from crate2xcode.graph import (
    BUILD_ACTION_MASK,
    CONFIGURATION_NAMES,
    SharedRefs,
    add_configuration_list,
    build_target_cluster,
)
from crate2xcode.ids import IdAllocator
from crate2xcode.objects import ObjectGraph, PBXRef
from crate2xcode.packages import Package
from crate2xcode.scripts import BUILD_SCRIPT, MERGE_SCRIPT, render_script
from crate2xcode.targets import EmissionTarget

MANIFEST_NAME = "Cargo.toml"
CREATED_ON_TOOLS_VERSION = "9.2"
LAST_UPGRADE_CHECK = "1300"
COMPATIBILITY_VERSION = "Xcode 11.4"

# Static linking of Rust code for iOS/tvOS needs the system resolver library
SYSTEM_LIBRARY_NAME = "libresolv.tbd"
SYSTEM_LIBRARY_PATH = "usr/lib/libresolv.tbd"

# Xcode arch/SDK conditions mapped to the names used in Rust target triples
TARGET_ARCH_SETTINGS = (
    ("CARGO_XCODE_TARGET_ARCH[arch=arm64*]", "aarch64"),
    # Catalyst adds an h suffix
    ("CARGO_XCODE_TARGET_ARCH[arch=x86_64*]", "x86_64"),
    ("CARGO_XCODE_TARGET_ARCH[arch=i386]", "i686"),
    ("CARGO_XCODE_TARGET_OS[sdk=macosx*]", "darwin"),
    ("CARGO_XCODE_TARGET_OS[sdk=iphonesimulator*]", "ios-sim"),
    ("CARGO_XCODE_TARGET_OS[sdk=iphonesimulator*][arch=x86_64*]", "ios"),
    ("CARGO_XCODE_TARGET_OS[sdk=iphoneos*]", "ios"),
    ("CARGO_XCODE_TARGET_OS[sdk=appletvsimulator*]", "tvos"),
    ("CARGO_XCODE_TARGET_OS[sdk=appletvos*]", "tvos"),
)


def project_build_settings(package: Package, configuration: str) -> Dict[str, Any]:
    """Build settings of the project-level Release or Debug configuration."""
    settings: Dict[str, Any] = OrderedDict([
        ("ALWAYS_SEARCH_USER_PATHS", "NO"),
        ("SUPPORTS_MACCATALYST", "YES"),
        ("CARGO_TARGET_DIR", "$(PROJECT_TEMP_DIR)/cargo_target"),
        # left empty for users to fill in
        ("CARGO_XCODE_FEATURES", ""),
    ])
    settings.update(TARGET_ARCH_SETTINGS)
    # PRODUCT_NAME is the base of Xcode's output file names
    settings["PRODUCT_NAME"] = package.name
    settings["MARKETING_VERSION"] = str(package.version)
    settings["CURRENT_PROJECT_VERSION"] = f"{package.version.major}.{package.version.minor}"
    settings["SDKROOT"] = "macosx"
    settings["CARGO_XCODE_BUILD_MODE"] = configuration.lower()
    if configuration == "Debug":
        settings["ONLY_ACTIVE_ARCH"] = "YES"
    return settings


def _add_build_rule(graph: ObjectGraph, make_id: IdAllocator, generator_version: str) -> PBXRef:
    return graph.add(
        make_id("", "BuildRule"),
        "PBXBuildRule",
        comment="PBXBuildRule",
        compilerSpec="com.apple.compilers.proxy.script",
        dependencyFile="$(DERIVED_FILE_DIR)/$(CARGO_XCODE_TARGET_ARCH)-$(EXECUTABLE_NAME).d",
        # must contain an asterisk
        filePatterns=f"*/{MANIFEST_NAME}",
        fileType="pattern.proxy",
        inputFiles=[],
        isEditable="0",
        name="Cargo project build",
        outputFiles=["$(OBJECT_FILE_DIR)/$(CARGO_XCODE_TARGET_ARCH)-$(EXECUTABLE_NAME)"],
        script=render_script(BUILD_SCRIPT, GENERATOR_VERSION=generator_version),
    )


def _add_merge_phase(graph: ObjectGraph, make_id: IdAllocator, generator_version: str) -> PBXRef:
    return graph.add(
        make_id("", "LipoScript"),
        "PBXShellScriptBuildPhase",
        comment="Universal Binary lipo",
        buildActionMask=BUILD_ACTION_MASK,
        files=[],
        inputFileListPaths=[],
        # must match the file list written by the build rule script
        inputPaths=["$(DERIVED_FILE_DIR)/$(ARCHS)-$(EXECUTABLE_NAME).xcfilelist"],
        name="Universal Binary lipo",
        outputFileListPaths=[],
        outputPaths=["$(TARGET_BUILD_DIR)/$(EXECUTABLE_PATH)"],
        runOnlyForDeploymentPostprocessing="0",
        shellPath="/bin/sh",
        shellScript=render_script(MERGE_SCRIPT, GENERATOR_VERSION=generator_version),
    )


def _add_system_library_group(graph: ObjectGraph, make_id: IdAllocator) -> PBXRef:
    library = graph.add(
        make_id("", SYSTEM_LIBRARY_NAME),
        "PBXFileReference",
        comment=SYSTEM_LIBRARY_NAME,
        lastKnownFileType="sourcecode.text-based-dylib-definition",
        name=SYSTEM_LIBRARY_NAME,
        path=SYSTEM_LIBRARY_PATH,
        sourceTree="SDKROOT",
    )
    return graph.add(
        make_id("", "Required Libraries"),
        "PBXGroup",
        comment="Required Libraries",
        children=[library],
        name="Required Libraries",
        sourceTree="<group>",
    )


def assemble_project(
    package: Package,
    targets: Sequence[EmissionTarget],
    make_id: IdAllocator,
    generator_version: str,
    manifest_path: Optional[str] = None,
) -> ObjectGraph:
    """
    Build the complete object graph of a package's Xcode project.

    Args:
        package: The package the project is generated for
        targets: Products to create, in the order they should be listed
        make_id: Identifier allocator seeded with the package id
        generator_version: crate2xcode version written into the scripts
        manifest_path: Path of Cargo.toml relative to the project's parent
            directory. Defaults to 'Cargo.toml'.

    Returns:
        An ObjectGraph with its root set to the PBXProject object
    """
    graph = ObjectGraph()

    manifest = graph.add(
        make_id("", MANIFEST_NAME),
        "PBXFileReference",
        comment=MANIFEST_NAME,
        fileEncoding="4",
        lastKnownFileType="text",
        name=MANIFEST_NAME,
        path=manifest_path or MANIFEST_NAME,
        sourceTree="<group>",
    )
    shared = SharedRefs(
        manifest=manifest,
        build_rule=_add_build_rule(graph, make_id, generator_version),
        merge_phase=_add_merge_phase(graph, make_id, generator_version),
    )

    target_refs: List[PBXRef] = []
    product_refs: List[PBXRef] = []
    for target in targets:
        cluster = build_target_cluster(graph, target, make_id, shared)
        target_refs.append(cluster.target)
        product_refs.append(cluster.product)

    products_group = graph.add(
        make_id("", "Products"),
        "PBXGroup",
        comment="Products",
        children=product_refs,
        name="Products",
        sourceTree="<group>",
    )
    # Xcode shows linked frameworks under this name
    frameworks_group = graph.add(
        make_id("", "Frameworks"),
        "PBXGroup",
        comment="Frameworks",
        children=[],
        name="Frameworks",
        sourceTree="<group>",
    )

    main_children = [manifest, products_group, frameworks_group]
    if any(t.is_static_lib for t in targets):
        main_children.append(_add_system_library_group(graph, make_id))

    main_group = graph.add(
        make_id("", "<root>"),
        "PBXGroup",
        comment="Main",
        children=main_children,
        sourceTree="<group>",
    )

    conf_list = add_configuration_list(
        graph,
        make_id("", "<configuration-list>"),
        {name: make_id("configuration", name) for name in CONFIGURATION_NAMES},
        {name: project_build_settings(package, name) for name in CONFIGURATION_NAMES},
        comment=f"Build configuration list for PBXProject \"{package.name}\"",
    )

    target_attributes = OrderedDict(
        (ref.identifier, OrderedDict([
            ("CreatedOnToolsVersion", CREATED_ON_TOOLS_VERSION),
            ("ProvisioningStyle", "Automatic"),
        ]))
        for ref in target_refs
    )

    project = graph.add(
        make_id("", "<project>"),
        "PBXProject",
        comment="Project object",
        attributes=OrderedDict([
            ("LastUpgradeCheck", LAST_UPGRADE_CHECK),
            ("TargetAttributes", target_attributes),
        ]),
        buildConfigurationList=conf_list,
        compatibilityVersion=COMPATIBILITY_VERSION,
        developmentRegion="en",
        hasScannedForEncodings="0",
        knownRegions=["en", "Base"],
        mainGroup=main_group,
        productRefGroup=products_group,
        projectDirPath="",
        projectRoot="",
        targets=target_refs,
    )
    graph.root = project.identifier
    return graph
