from __future__ import annotations

import json
from pathlib import Path

import pytest

from crate2xcode.packages import CrateTarget, Package, Version


def make_package(
    targets,
    name: str = "mylib",
    version: str = "0.1.0",
    package_id: str = "path+file:///work/mylib#0.1.0",
    manifest_path: str = "/work/mylib/Cargo.toml",
) -> Package:
    """Build a Package from (name, kinds[, required_features]) tuples."""
    crate_targets = []
    for t in targets:
        features = tuple(t[2]) if len(t) > 2 else ()
        crate_targets.append(CrateTarget(name=t[0], kinds=tuple(t[1]), required_features=features))
    return Package(
        id=package_id,
        name=name,
        version=Version.parse(version),
        manifest_path=Path(manifest_path),
        targets=tuple(crate_targets),
    )


@pytest.fixture
def package_factory():
    return make_package


@pytest.fixture
def mixed_package() -> Package:
    return make_package([
        ("mylib", ["lib", "cdylib", "staticlib"]),
        ("mytool", ["bin"], ["cli"]),
        ("integration", ["test"]),
    ])


@pytest.fixture
def metadata_document(tmp_path: Path) -> dict:
    manifest = tmp_path / "mylib" / "Cargo.toml"
    return {
        "packages": [
            {
                "id": "path+file:///work/mylib#0.1.0",
                "name": "mylib",
                "version": "2.3.4",
                "manifest_path": str(manifest),
                "targets": [
                    {"name": "mylib", "kind": ["cdylib", "staticlib"], "crate_types": ["cdylib", "staticlib"]},
                    {"name": "mytool", "kind": ["bin"], "required-features": ["cli"]},
                ],
            },
            {
                "id": "path+file:///work/helpers#0.1.0",
                "name": "helpers",
                "version": "0.1.0",
                "manifest_path": str(tmp_path / "helpers" / "Cargo.toml"),
                "targets": [
                    {"name": "helpers", "kind": ["lib"]},
                    {"name": "demo", "kind": ["example"]},
                ],
            },
        ],
        "workspace_members": [],
        "version": 1,
    }


@pytest.fixture
def metadata_file(tmp_path: Path, metadata_document: dict) -> Path:
    path = tmp_path / "metadata.json"
    path.write_text(json.dumps(metadata_document), encoding="utf-8")
    return path
