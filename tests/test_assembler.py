from crate2xcode.assembler import SYSTEM_LIBRARY_NAME, assemble_project
from crate2xcode.ids import IdAllocator
from crate2xcode.targets import classify_targets

VERSION = "1.0.0-test"


def assemble(package, manifest_path=None):
    targets = classify_targets(package.targets, package.version.major)
    graph = assemble_project(package, targets, IdAllocator.for_package(package.id), VERSION, manifest_path)
    return graph, targets


def project_of(graph):
    return graph[graph.root]


def test_root_is_project(mixed_package):
    graph, _ = assemble(mixed_package)
    project = project_of(graph)
    assert project.isa == "PBXProject"
    assert project.fields["compatibilityVersion"] == "Xcode 11.4"


def test_targets_and_products_follow_input_order(mixed_package):
    graph, targets = assemble(mixed_package)
    project = project_of(graph)

    names = [graph.resolve(r).fields["name"] for r in project.fields["targets"]]
    assert names == [t.display_name for t in targets]
    assert names == ["mylib-cdylib", "mylib-staticlib", "mytool-bin"]

    products = graph.resolve(project.fields["productRefGroup"])
    product_names = [graph.resolve(r).fields["name"] for r in products.fields["children"]]
    assert product_names == ["mylib.dylib", "libmylib_static.a", "mytool"]

    # each target's product is the product listed at the same position
    for target_ref, product_ref in zip(project.fields["targets"], products.fields["children"]):
        assert graph.resolve(target_ref).fields["productReference"] == product_ref


def test_target_attributes(mixed_package):
    graph, _ = assemble(mixed_package)
    project = project_of(graph)
    attrs = project.fields["attributes"]["TargetAttributes"]
    assert list(attrs) == [r.identifier for r in project.fields["targets"]]
    for value in attrs.values():
        assert value == {"CreatedOnToolsVersion": "9.2", "ProvisioningStyle": "Automatic"}


def test_every_configuration_list_is_release_debug(mixed_package):
    graph, _ = assemble(mixed_package)
    conf_lists = graph.of_type("XCConfigurationList")
    # one per target plus the project's
    assert len(conf_lists) == 4
    for conf_list in conf_lists:
        names = [graph.resolve(r).fields["name"] for r in conf_list.fields["buildConfigurations"]]
        assert names == ["Release", "Debug"]
        assert conf_list.fields["defaultConfigurationName"] == "Release"
        assert conf_list.fields["defaultConfigurationIsVisible"] == "0"


def test_project_configurations(package_factory):
    package = package_factory([("foo", ["bin"])], name="foo-pkg", version="2.5.1")
    graph, _ = assemble(package)
    conf_list = graph.resolve(project_of(graph).fields["buildConfigurationList"])
    release, debug = [graph.resolve(r).fields["buildSettings"] for r in conf_list.fields["buildConfigurations"]]

    assert release["PRODUCT_NAME"] == "foo-pkg"
    assert release["MARKETING_VERSION"] == "2.5.1"
    assert release["CURRENT_PROJECT_VERSION"] == "2.5"
    assert release["CARGO_XCODE_BUILD_MODE"] == "release"
    assert release["CARGO_XCODE_TARGET_ARCH[arch=arm64*]"] == "aarch64"
    assert release["CARGO_XCODE_TARGET_OS[sdk=iphonesimulator*]"] == "ios-sim"
    assert "ONLY_ACTIVE_ARCH" not in release

    assert debug["CARGO_XCODE_BUILD_MODE"] == "debug"
    assert debug["ONLY_ACTIVE_ARCH"] == "YES"


def test_marketing_version_keeps_build_metadata(package_factory):
    package = package_factory([("foo", ["bin"])], version="1.4.0-rc.1+git.abc")
    graph, _ = assemble(package)
    conf_list = graph.resolve(project_of(graph).fields["buildConfigurationList"])
    for ref in conf_list.fields["buildConfigurations"]:
        settings = graph.resolve(ref).fields["buildSettings"]
        assert settings["MARKETING_VERSION"] == "1.4.0-rc.1+git.abc"
        assert settings["CURRENT_PROJECT_VERSION"] == "1.4"


def test_shared_objects_are_shared(mixed_package):
    graph, _ = assemble(mixed_package)
    assert len(graph.of_type("PBXBuildRule")) == 1
    assert len(graph.of_type("PBXShellScriptBuildPhase")) == 1

    rule = graph.of_type("PBXBuildRule")[0]
    assert rule.fields["filePatterns"] == "*/Cargo.toml"
    assert "cargo $CARGO_XCODE_USE_NIGHTLY build" in rule.fields["script"]
    assert VERSION in rule.fields["script"]

    lipo = graph.of_type("PBXShellScriptBuildPhase")[0]
    assert "lipo -create" in lipo.fields["shellScript"]

    for native in graph.of_type("PBXNativeTarget"):
        assert native.fields["buildRules"][0].identifier == rule.identifier
        assert native.fields["buildPhases"][1].identifier == lipo.identifier


def _has_system_library(graph):
    names = [obj.fields.get("name") for obj in graph]
    return SYSTEM_LIBRARY_NAME in names or "Required Libraries" in names


def test_system_library_only_with_static_libs(package_factory):
    with_static = package_factory([("foo", ["staticlib"])])
    graph, _ = assemble(with_static)
    assert _has_system_library(graph)
    main = graph.resolve(project_of(graph).fields["mainGroup"])
    child_names = [graph.resolve(r).fields.get("name") for r in main.fields["children"]]
    assert "Required Libraries" in child_names

    without_static = package_factory([("foo", ["bin", "cdylib"])])
    graph, _ = assemble(without_static)
    assert not _has_system_library(graph)


def test_manifest_reference_path(mixed_package):
    graph, _ = assemble(mixed_package)
    (manifest,) = [o for o in graph.of_type("PBXFileReference") if o.fields.get("name") == "Cargo.toml"]
    assert manifest.fields["path"] == "Cargo.toml"
    assert manifest.fields["sourceTree"] == "<group>"

    graph, _ = assemble(mixed_package, manifest_path="../mylib/Cargo.toml")
    (manifest,) = [o for o in graph.of_type("PBXFileReference") if o.fields.get("name") == "Cargo.toml"]
    assert manifest.fields["path"] == "../mylib/Cargo.toml"


def test_no_targets_gives_empty_project(package_factory):
    graph, targets = assemble(package_factory([("foo", ["lib"])]))
    assert targets == []
    project = project_of(graph)
    assert project.fields["targets"] == []
    assert graph.resolve(project.fields["productRefGroup"]).fields["children"] == []


def test_fifty_targets_have_distinct_identifiers(package_factory):
    kinds = (["bin"], ["cdylib"], ["staticlib"], ["cdylib", "staticlib"])
    package = package_factory([(f"crate-{i}", kinds[i % len(kinds)]) for i in range(40)])
    graph, targets = assemble(package)
    assert len(targets) == 50

    # ObjectGraph rejects duplicates, so every object got its own identifier
    identifiers = [obj.identifier for obj in graph]
    assert len(identifiers) == len(set(identifiers))
    assert len(graph.of_type("PBXNativeTarget")) == 50


def test_identifiers_survive_reordering(package_factory):
    a = package_factory([("alpha", ["staticlib"]), ("beta", ["bin"])])
    b = package_factory([("beta", ["bin"]), ("alpha", ["staticlib"])])

    def ids_by_name(graph):
        return {obj.fields["name"]: obj.identifier for obj in graph.of_type("PBXNativeTarget")}

    graph_a, _ = assemble(a)
    graph_b, _ = assemble(b)
    assert ids_by_name(graph_a) == ids_by_name(graph_b)
    assert {o.identifier for o in graph_a} == {o.identifier for o in graph_b}
