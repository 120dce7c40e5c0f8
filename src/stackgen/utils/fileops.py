"""File output helpers for generated artifacts and override documents."""

from __future__ import annotations

import json
import os
import shutil
import tempfile
from pathlib import Path
from typing import Any

import yaml


def atomic_write(path: Path, content: str) -> None:
    """Replace ``path`` with ``content`` in one rename; an existing file keeps its mode."""
    path.parent.mkdir(parents=True, exist_ok=True)

    fd, temp_path = tempfile.mkstemp(dir=path.parent, text=True)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as f:
            f.write(content)
        if path.exists():
            shutil.copymode(path, temp_path)
        os.replace(temp_path, path)
    except Exception:
        os.unlink(temp_path)
        raise


def dump_yaml(data: Any) -> str:
    """Render YAML in insertion order, block style."""
    return yaml.safe_dump(data, sort_keys=False, default_flow_style=False, allow_unicode=True)


def dump_json(data: Any) -> str:
    return json.dumps(data, indent=2, ensure_ascii=False) + "\n"


def write_yaml(path: Path, data: Any) -> None:
    atomic_write(Path(path), dump_yaml(data))


def write_json(path: Path, data: Any) -> None:
    atomic_write(Path(path), dump_json(data))
