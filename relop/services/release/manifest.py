"""Cargo manifest reading.

Only the fields publishing cares about are read: name, version, the publish
flag, and the names of normal and build dependencies. Dev-dependencies are
left out since they never constrain the order in which crates reach the
registry.
"""

from __future__ import annotations

import tomllib
from collections.abc import Mapping
from pathlib import Path

from relop.core.result import Err, Ok, Result
from relop.core.structured import StrDict, as_str_dict, get_bool, get_str, get_table
from relop.services.release.errors import MetadataError
from relop.services.release.model import Package

MANIFEST_FILE = "Cargo.toml"

_DEPENDENCY_TABLES = ("dependencies", "build-dependencies")


def _load_toml(path: Path) -> Result[StrDict, MetadataError]:
    try:
        data_obj: object = tomllib.loads(path.read_text(encoding="utf-8"))
    except FileNotFoundError:
        return Err(MetadataError(message=f"manifest not found: {path}"))
    except OSError as e:
        return Err(MetadataError(message=f"cannot read manifest {path}: {e}"))
    except UnicodeDecodeError as e:
        return Err(MetadataError(message=f"invalid UTF-8 in {path}: {e}"))
    except tomllib.TOMLDecodeError as e:
        return Err(MetadataError(message=f"invalid TOML in {path}: {e}"))

    data = as_str_dict(data_obj)
    if data is None:
        return Err(MetadataError(message=f"manifest root must be a table: {path}"))
    return Ok(data)


def _find_workspace_manifest(package_dir: Path) -> Path | None:
    start = package_dir.resolve()
    # A root crate can be its own workspace.
    for parent in (start, *start.parents):
        candidate = parent / MANIFEST_FILE
        if not candidate.is_file():
            continue
        loaded = _load_toml(candidate)
        if isinstance(loaded, Ok) and get_table(loaded.value, "workspace") is not None:
            return candidate
    return None


def _inherits(value: object) -> bool:
    table = as_str_dict(value)
    return table is not None and get_bool(table, "workspace") is True


def _workspace_tables(package_dir: Path) -> Result[StrDict, MetadataError]:
    ws_manifest = _find_workspace_manifest(package_dir)
    if ws_manifest is None:
        return Err(
            MetadataError(
                message=f"{package_dir}: inherits from a workspace, but none was found",
                hint="Expected a parent Cargo.toml with a [workspace] table.",
            )
        )
    loaded = _load_toml(ws_manifest)
    if isinstance(loaded, Err):
        return loaded
    workspace = get_table(loaded.value, "workspace")
    return Ok(workspace or {})


def _dependency_names(
    tables: Mapping[str, object],
    workspace_deps: Mapping[str, object],
) -> set[str]:
    names: set[str] = set()
    for table_name in _DEPENDENCY_TABLES:
        deps = get_table(tables, table_name)
        if deps is None:
            continue
        for key, spec in deps.items():
            spec_tbl = as_str_dict(spec)
            if spec_tbl is None:
                names.add(key)
                continue
            renamed = get_str(spec_tbl, "package")
            if renamed is None and _inherits(spec_tbl):
                inherited = get_table(workspace_deps, key)
                renamed = get_str(inherited, "package") if inherited is not None else None
            names.add(renamed or key)
    return names


def _read_virtual_workspace(package_dir: Path, data: StrDict) -> Result[Package, MetadataError]:
    """A workspace root without [package], versioned by [workspace.package].

    It is named after its directory and is never publishable.
    """
    manifest_path = package_dir / MANIFEST_FILE
    workspace = get_table(data, "workspace")
    ws_package = get_table(workspace, "package") if workspace is not None else None
    version = get_str(ws_package, "version") if ws_package is not None else None
    if version is None:
        return Err(
            MetadataError(
                message=f"no [package] table in {manifest_path}",
                hint=(
                    "Point at a crate directory, or set [workspace.package] version "
                    "in the workspace root."
                ),
            )
        )
    return Ok(
        Package(
            name=package_dir.resolve().name,
            path=package_dir,
            version=version,
            dependencies=frozenset(),
            publish=False,
        )
    )


def read_manifest(package_dir: Path) -> Result[Package, MetadataError]:
    """Read ``<package_dir>/Cargo.toml`` into a Package snapshot."""
    manifest_path = package_dir / MANIFEST_FILE
    loaded = _load_toml(manifest_path)
    if isinstance(loaded, Err):
        return loaded
    data = loaded.value

    package_tbl = get_table(data, "package")
    if package_tbl is None:
        return _read_virtual_workspace(package_dir, data)

    name = get_str(package_tbl, "name")
    if name is None:
        return Err(MetadataError(message=f"missing package.name in {manifest_path}"))

    dep_sources: list[StrDict] = [data]
    for target_obj in (get_table(data, "target") or {}).values():
        target_tbl = as_str_dict(target_obj)
        if target_tbl is not None:
            dep_sources.append(target_tbl)

    inherits_package = _inherits(package_tbl.get("version")) or _inherits(
        package_tbl.get("publish")
    )
    inherits_deps = any(
        _inherits(spec)
        for source in dep_sources
        for table_name in _DEPENDENCY_TABLES
        for spec in (get_table(source, table_name) or {}).values()
    )

    ws_package: StrDict = {}
    ws_deps: StrDict = {}
    if inherits_package or inherits_deps:
        ws = _workspace_tables(package_dir)
        if isinstance(ws, Err):
            return ws
        ws_package = get_table(ws.value, "package") or {}
        ws_deps = get_table(ws.value, "dependencies") or {}

    version_src = ws_package if _inherits(package_tbl.get("version")) else package_tbl
    version = get_str(version_src, "version")
    if version is None:
        return Err(
            MetadataError(message=f"missing package.version for {name} in {manifest_path}")
        )

    publish_src = ws_package if _inherits(package_tbl.get("publish")) else package_tbl
    publish_obj = publish_src.get("publish")
    # `publish = false` and an empty registry list both mean "never publish".
    publish = not (publish_obj is False or publish_obj == [])

    dependencies: set[str] = set()
    for source in dep_sources:
        dependencies |= _dependency_names(source, ws_deps)
    dependencies.discard(name)

    return Ok(
        Package(
            name=name,
            path=package_dir,
            version=version,
            dependencies=frozenset(dependencies),
            publish=publish,
        )
    )
