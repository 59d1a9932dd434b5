# src/atlas_backflow/handlers/file.py
"""Handler da família File: leitura e escrita de arquivos texto locais."""

from __future__ import annotations

import logging
from pathlib import Path
from typing import Any, List, Mapping, Optional

from atlas_backflow.core.exceptions import ConfigurationError
from atlas_backflow.core.pipeline.handler import invoke_verb
from atlas_backflow.core.pipeline.types import OperationFamily


logger = logging.getLogger(__name__)


class FileHandler:
    family = OperationFamily.FILE.value
    verbs = frozenset({"read", "write"})

    def __init__(self, step: Mapping[str, Any], settings: Optional[Mapping[str, Any]] = None):
        self.filename: Optional[str] = step.get("filename") or None
        self.write_data = step.get("write_data")

    def invoke(self, verb: str) -> Any:
        return invoke_verb(self, verb)

    def _path(self, verb: str) -> Path:
        if not self.filename:
            raise ConfigurationError(message=f"`{verb}` requires `filename`", details={"action": verb})
        return Path(self.filename)

    def read(self) -> List[str]:
        """Linhas do arquivo (separadas por `\\n`)."""
        return self._path("read").read_text(encoding="utf-8").split("\n")

    def write(self) -> bool:
        path = self._path("write")
        data = self.write_data
        if data is None:
            content = ""
        elif isinstance(data, (list, tuple)):
            content = "\n".join(str(line) for line in data)
        else:
            content = str(data)

        path.write_text(content, encoding="utf-8")
        logger.info("Data written to %s", path)
        return True
