"""Generate JSON Schema for the harness YAML config."""

from __future__ import annotations

import json
from pathlib import Path

from forkunit.config import HarnessConfig


def _ensure_parent(path: Path) -> None:
    path.parent.mkdir(parents=True, exist_ok=True)


def generate_json_schema() -> dict:
    schema = HarnessConfig.model_json_schema()
    schema["title"] = "forkunit harness config"
    return schema


def write_json_schema(path: Path) -> None:
    _ensure_parent(path)
    schema = generate_json_schema()
    path.write_text(json.dumps(schema, indent=2) + "\n")
