"""Tests for artifact file writing."""

import json
import os
import stat

import yaml

from stackgen.utils.fileops import atomic_write, write_json, write_yaml


def test_atomic_write_creates_parents(tmp_path):
    path = tmp_path / "nested" / "out" / "file.txt"
    atomic_write(path, "hello\n")
    assert path.read_text(encoding="utf-8") == "hello\n"


def test_atomic_write_replaces_and_keeps_mode(tmp_path):
    path = tmp_path / "secrets.yaml"
    path.write_text("old\n", encoding="utf-8")
    os.chmod(path, 0o600)

    atomic_write(path, "new\n")

    assert path.read_text(encoding="utf-8") == "new\n"
    assert stat.S_IMODE(path.stat().st_mode) == 0o600
    assert sorted(p.name for p in tmp_path.iterdir()) == ["secrets.yaml"]


def test_write_yaml_keeps_insertion_order(tmp_path):
    path = tmp_path / "compose.yml"
    write_yaml(path, {"version": "3.8", "services": {"b": {}, "a": {}}})
    text = path.read_text(encoding="utf-8")
    assert text.index("version") < text.index("services")
    assert list(yaml.safe_load(text)["services"]) == ["b", "a"]


def test_write_json_trailing_newline(tmp_path):
    path = tmp_path / "devcontainer.json"
    write_json(path, {"name": "café"})
    text = path.read_text(encoding="utf-8")
    assert text.endswith("}\n")
    assert json.loads(text) == {"name": "café"}
