"""JSON artifact output for the dashboard renderer."""

from __future__ import annotations

import json
from collections.abc import Mapping
from pathlib import Path
from typing import Any


class ArtifactRepository:
    """Writes named JSON documents into one output directory."""

    def __init__(self, out_dir: Path, *, indent: int = 2) -> None:
        self.out_dir = out_dir
        self.indent = indent

    def path_for(self, name: str) -> Path:
        return self.out_dir / name

    def write(self, name: str, payload: Any) -> Path:
        self.out_dir.mkdir(parents=True, exist_ok=True)
        path = self.path_for(name)
        with path.open("w", encoding="utf-8") as file:
            json.dump(payload, file, indent=self.indent, ensure_ascii=False, allow_nan=False)
            file.write("\n")
        return path

    def write_all(self, artifacts: Mapping[str, Any]) -> list[Path]:
        return [self.write(name, payload) for name, payload in artifacts.items()]

    def read(self, name: str) -> Any:
        with self.path_for(name).open("r", encoding="utf-8") as file:
            return json.load(file)
