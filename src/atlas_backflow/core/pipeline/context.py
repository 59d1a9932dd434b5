"""
Contexto de execução compartilhado de uma run do Atlas BackFlow.

Este módulo define o `RunContext`, a estrutura canônica passada
explicitamente do executor para resolver, validator e extractor.

O RunContext é o único dono de:
    - o param store da run (chave → valor, mutável, last writer wins)
    - os settings efetivos do interpretador
    - o log estruturado de eventos
    - os warnings não fatais agrupados por step (ex.: extraction miss)

Princípios fundamentais:
    - Isolamento por execução: cada run possui seu próprio contexto
    - Nenhum singleton de módulo; runs independentes não compartilham estado
    - Eventos de log são estruturados e espelhados no `logging` padrão

Invariantes:
    - Logs sempre incluem `run_id` e `step_id`
    - Warnings são agrupados por `step_id`
    - Apenas o executor escreve no param store

Limites explícitos:
    - Não executa steps
    - Não persiste estado entre processos
"""

from __future__ import annotations

import logging
import uuid
from dataclasses import dataclass, field
from datetime import datetime, timezone
from typing import Any, Dict, List


logger = logging.getLogger("atlas_backflow")

_LEVELS = {
    "debug": logging.DEBUG,
    "info": logging.INFO,
    "warning": logging.WARNING,
    "error": logging.ERROR,
}


def _new_run_id() -> str:
    return f"run-{uuid.uuid4().hex[:12]}"


@dataclass
class RunContext:
    """
    Contexto de execução compartilhado de uma run.

    Campos:
        - run_id: identificador único da execução
        - created_at: timestamp UTC de criação
        - settings: settings efetivos (ver `core.config.settings`)
        - params: param store da run, compartilhado por referência
        - meta: metadados livres (ex.: nome do workflow, hash)
        - events: log estruturado de eventos
        - warnings: warnings por step_id
    """
    run_id: str = field(default_factory=_new_run_id)
    created_at: datetime = field(default_factory=lambda: datetime.now(timezone.utc))
    settings: Dict[str, Any] = field(default_factory=dict)
    params: Dict[str, Any] = field(default_factory=dict)
    meta: Dict[str, Any] = field(default_factory=dict)

    events: List[Dict[str, Any]] = field(default_factory=list, init=False)
    warnings: Dict[str, List[str]] = field(default_factory=dict, init=False)

    # -----------------------------
    # Param store
    # -----------------------------
    def set_param(self, key: str, value: Any) -> None:
        self.params[key] = value

    def has_param(self, key: str) -> bool:
        return key in self.params

    def get_param(self, key: str) -> Any:
        if key not in self.params:
            raise KeyError(key)
        return self.params[key]

    # -----------------------------
    # Logging & warnings
    # -----------------------------
    def log(self, *, step_id: str, level: str, message: str, **extra: Any) -> None:
        event = {
            "run_id": self.run_id,
            "step_id": step_id,
            "level": level,
            "message": message,
            "timestamp": datetime.now(timezone.utc).isoformat(),
        }
        event.update(extra)
        self.events.append(event)
        logger.log(_LEVELS.get(level, logging.INFO), "[%s] %s: %s", self.run_id, step_id, message)

    def add_warning(self, *, step_id: str, message: str) -> None:
        if step_id not in self.warnings:
            self.warnings[step_id] = []
        self.warnings[step_id].append(message)
        self.log(step_id=step_id, level="warning", message=message)
