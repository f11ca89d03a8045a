import pytest
from conftest import write_manifest

from signaler.engine import build_resolution_report, plan, resolve_entry
from signaler.engine.manifest import ManifestResolver
from signaler.exceptions import EntryNotFoundError, UnsupportedSchemaError


def _resolve(dirs):
    return ManifestResolver(dirs.cache, dirs.launcher).resolve()


def test_layout_is_pinned_without_a_latest_install(dirs, make_engine):
    make_engine(dirs.launcher, engine_version="1.2.3")

    layout = plan(_resolve(dirs))

    engines_dir = dirs.cache / "engine"
    assert layout.engines_dir == str(engines_dir)
    assert layout.latest_dir == str(engines_dir / "latest")
    assert layout.version_dir == str(engines_dir / "1.2.3")
    assert layout.selected_dir == layout.version_dir
    assert layout.expected_engine_root == layout.version_dir
    assert layout.selection_kind == "manifest_version"
    assert layout.selection_value == "1.2.3"
    assert layout.selection_state == "pinned"
    assert layout.latest_available is False
    assert layout.latest_manifest_version is None
    assert layout.latest_matches_manifest is False


def test_layout_is_latest_when_latest_holds_the_pinned_version(dirs, make_engine):
    make_engine(dirs.launcher, engine_version="1.2.3")
    write_manifest(dirs.cache / "engine" / "latest", engine_version="1.2.3")

    layout = plan(_resolve(dirs))

    assert layout.selection_state == "latest"
    assert layout.latest_available is True
    assert layout.latest_matches_manifest is True
    assert layout.selected_dir == str(dirs.cache / "engine" / "1.2.3")


def test_newer_latest_does_not_change_the_selected_version(dirs, make_engine):
    make_engine(dirs.launcher, engine_version="1.2.3")
    write_manifest(dirs.cache / "engine" / "latest", engine_version="1.3.0")

    layout = plan(_resolve(dirs))

    assert layout.selection_state == "pinned"
    assert layout.latest_manifest_version == "1.3.0"
    assert layout.selected_dir == str(dirs.cache / "engine" / "1.2.3")


def test_unreadable_latest_manifest_is_ignored(dirs, make_engine):
    make_engine(dirs.launcher)
    latest = dirs.cache / "engine" / "latest"
    latest.mkdir(parents=True)
    (latest / "engine.manifest.json").write_text("garbage", encoding="utf-8")

    layout = plan(_resolve(dirs))

    assert layout.latest_available is True
    assert layout.latest_manifest_version is None
    assert layout.selection_state == "pinned"


def test_latest_manifest_with_invalid_utf8_is_ignored(dirs, make_engine):
    make_engine(dirs.launcher)
    latest = dirs.cache / "engine" / "latest"
    latest.mkdir(parents=True)
    (latest / "engine.manifest.json").write_bytes(b"\xff\xfe{}")

    layout = plan(_resolve(dirs))

    assert layout.latest_available is True
    assert layout.latest_manifest_version is None
    assert layout.selection_state == "pinned"


def test_entry_is_resolved_against_the_manifest_directory(dirs, make_engine):
    make_engine(dirs.launcher, entry="dist/engine.js")

    entry = resolve_entry(_resolve(dirs))

    assert entry == (dirs.launcher / "dist" / "engine.js").resolve()
    assert entry.name == "engine.js"


def test_unsupported_schema_fails_even_when_entry_exists(dirs, make_engine):
    make_engine(dirs.launcher, schema_version=2)

    with pytest.raises(UnsupportedSchemaError, match="schemaVersion: 2"):
        resolve_entry(_resolve(dirs))


def test_missing_entry_file(dirs):
    write_manifest(dirs.launcher, entry="dist/engine.js")

    with pytest.raises(EntryNotFoundError, match="Engine entry not found"):
        resolve_entry(_resolve(dirs))


def test_resolution_report_bundles_layout(dirs, make_engine):
    make_engine(dirs.cache / "engine", engine_version="4.0.0")

    report = build_resolution_report(_resolve(dirs))

    assert report.schema_version == 1
    assert report.manifest_source == "cache"
    assert report.entry_path.endswith("engine.js")
    assert report.cache_layout.manifest_engine_version == "4.0.0"
