"""Tests for the command-line entry point."""

from __future__ import annotations

import json
import shutil

import pytest

from exercise_pipeline.__main__ import main


class TestMain:
    def test_processes_file_and_writes_report(self, collection_file, overrides_path, tmp_path):
        report_path = tmp_path / "report.json"
        code = main([
            str(collection_file),
            "--overrides", str(overrides_path),
            "--report", str(report_path),
        ])
        assert code == 0

        payload = json.loads(report_path.read_text(encoding="utf-8"))
        file_report = payload["files"][str(collection_file)]
        assert file_report["cleaned"] == 2
        assert file_report["filtered_ids"] == ["the-groundlings"]
        assert payload["failed"] == {}
        assert payload["orphaned_ids"] == ["improwiki:ghost"]

        written = json.loads(collection_file.read_text(encoding="utf-8"))
        assert len(written["exercises"]) == 3

    def test_orphans_computed_across_files(self, collection_file, overrides_path, tmp_path):
        other = tmp_path / "improwiki-exercises.json"
        other.write_text(json.dumps({
            "attribution": {"source": "improwiki.com"},
            "exercises": [{"id": "improwiki:ghost", "name": "Ghost", "tags": []}],
        }), encoding="utf-8")
        report_path = tmp_path / "report.json"

        code = main([
            str(collection_file), str(other),
            "--overrides", str(overrides_path),
            "--report", str(report_path),
        ])
        assert code == 0
        payload = json.loads(report_path.read_text(encoding="utf-8"))
        assert payload["orphaned_ids"] == []

    def test_dry_run(self, collection_file, overrides_path):
        before = collection_file.read_bytes()
        assert main([str(collection_file), "--overrides", str(overrides_path), "--dry-run"]) == 0
        assert collection_file.read_bytes() == before

    def test_config_profile(self, collection_file, overrides_path, tmp_path):
        fixtures = overrides_path.parent
        profile = tmp_path / "profile" / "cleanup.yaml"
        profile.parent.mkdir()
        shutil.copy(fixtures / "cleanup.yaml", profile)
        shutil.copy(overrides_path, profile.parent / "inferred-tags.json")

        assert main([str(collection_file), "--config", str(profile)]) == 0
        written = json.loads(collection_file.read_text(encoding="utf-8"))
        tags = {ex["id"]: ex["tags"] for ex in written["exercises"]}
        assert tags["yes-and"] == ["game", "heightening"]

    def test_missing_file_fails(self, collection_file, tmp_path):
        missing = tmp_path / "missing.json"
        assert main([str(collection_file), str(missing), "--dry-run"]) == 1

    def test_bad_config_fails(self, collection_file, tmp_path):
        bad = tmp_path / "bad.yaml"
        bad.write_text("unknownKey: 1\n", encoding="utf-8")
        before = collection_file.read_bytes()
        assert main([str(collection_file), "--config", str(bad)]) == 1
        assert collection_file.read_bytes() == before

    @pytest.mark.parametrize("content", [
        '{"heightening": 5}',
        '{"tags": {"x": {"exercises": 5}}}',
    ])
    def test_bad_overrides_file_fails(self, collection_file, tmp_path, content):
        overrides = tmp_path / "overrides.json"
        overrides.write_text(content, encoding="utf-8")
        before = collection_file.read_bytes()
        assert main([str(collection_file), "--overrides", str(overrides)]) == 1
        assert collection_file.read_bytes() == before
