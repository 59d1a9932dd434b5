"""
Tipos canônicos do pipeline do Atlas BackFlow.

Este módulo define as estruturas que padronizam a comunicação entre
o loader de workflows, o executor e os handlers de operação.

Componentes principais:
    - OperationFamily    → enum das famílias de backend (api, database, ...)
    - StepStatus         → enum de estados finais (SUCCESS, SKIPPED, RETURNED)
    - Step               → visão imutável de um step declarativo
    - WorkflowDefinition → nome, seed do param store e steps ordenados
    - StepOutcome        → resultado imutável de um step executado

Princípios fundamentais:
    - Tipos são estáveis e serializáveis
    - O payload bruto do workflow nunca é mutado (cópia profunda no load)
    - Nenhuma lógica de execução vive neste módulo

Limites explícitos:
    - Não resolve placeholders
    - Não executa handlers
    - Não decide políticas de retry
"""

from __future__ import annotations

from copy import deepcopy
from dataclasses import dataclass, field
from enum import Enum
from typing import Any, Dict, List, Mapping, Optional, Tuple


class OperationFamily(str, Enum):
    """
    Famílias de backend suportadas pelo interpretador.

    Cada família corresponde a exatamente um handler registrado no
    `HandlerRegistry`. Os valores são strings para facilitar
    serialização em eventos de log e o campo `type` dos steps.
    """
    API = "api"
    DATABASE = "database"
    FILE = "file"
    CLOUD = "cloud"
    MESSAGING = "messaging"


class StepStatus(str, Enum):
    """
    Estados finais possíveis de um step.

    Falhas não aparecem aqui: um step que esgota o retry encerra a run
    com `StepFailedError`, e não existe continuação parcial.

        - SUCCESS: dispatch concluído e validação satisfeita
        - SKIPPED: `skip_step: true`, nenhum handler invocado
        - RETURNED: `return: true`, a run terminou neste step
    """
    SUCCESS = "success"
    SKIPPED = "skipped"
    RETURNED = "returned"


def _as_bool(value: Any) -> bool:
    if isinstance(value, str):
        return value.strip().lower() == "true"
    return value is True


def _as_seconds(value: Any) -> float:
    if value is None or value == "":
        return 0.0
    try:
        seconds = float(value)
    except (TypeError, ValueError):
        return 0.0
    return max(seconds, 0.0)


@dataclass(frozen=True)
class Step:
    """
    Visão imutável de um step declarativo.

    Campos de controle são extraídos do payload bruto; o payload inteiro
    (incluindo campos específicos de família como `end point`, `table_name`,
    `bucket`, `topic`) é preservado em `payload` para o handler.

    Campos:
        - index: posição do step na lista (0-based)
        - number: ordinal declarado em `step`
        - label: `step name` ou `flow name`
        - action: verbo já normalizado em minúsculas
        - family: `type` explícito, quando declarado
        - retry: orçamento de retry (>= 0)
        - delay: atraso pós-step em segundos (sem `delay`, vale `default_delay`)
        - retry_delay: atraso entre tentativas (default = delay)
        - payload: mapeamento bruto do step

    Invariantes:
        - `retry` nunca é negativo
        - `payload` é uma cópia, nunca o dicionário do workflow original
    """
    index: int
    number: Any
    label: str
    action: str
    family: Optional[str]
    retry: int
    delay: float
    retry_delay: float
    skip: bool
    returns: bool
    log: bool
    payload: Dict[str, Any] = field(default_factory=dict, repr=False)

    @property
    def step_id(self) -> str:
        number = self.number if self.number not in (None, "") else self.index + 1
        return f"step {number}"

    @property
    def has_validation(self) -> bool:
        return "validate_response" in self.payload

    @property
    def expected(self) -> Any:
        return self.payload.get("validate_response")

    @property
    def value_map(self) -> Any:
        return self.payload.get("value_map")

    def with_payload(self, payload: Dict[str, Any], *, default_delay: float = 0.0) -> "Step":
        """Novo Step com o payload resolvido (campos de controle recalculados)."""
        return Step.from_dict(payload, index=self.index, default_delay=default_delay)

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any], *, index: int = 0, default_delay: float = 0.0) -> "Step":
        if not isinstance(raw, Mapping):
            raise TypeError(f"step deve ser dict, recebido: {type(raw).__name__}")

        payload = deepcopy(dict(raw))
        raw_delay = payload.get("delay")
        delay = _as_seconds(default_delay if raw_delay is None or raw_delay == "" else raw_delay)
        retry_delay = payload.get("retry_delay")

        try:
            retry = int(payload.get("retry") or 0)
        except (TypeError, ValueError):
            retry = 0

        family = payload.get("type")

        return cls(
            index=index,
            number=payload.get("step"),
            label=str(payload.get("step name") or payload.get("flow name") or ""),
            action=str(payload.get("action") or "").strip().lower(),
            family=str(family) if family else None,
            retry=max(retry, 0),
            delay=delay,
            retry_delay=delay if retry_delay is None else _as_seconds(retry_delay),
            skip=_as_bool(payload.get("skip_step")),
            returns=_as_bool(payload.get("return")),
            log=_as_bool(payload.get("log")),
            payload=payload,
        )


@dataclass(frozen=True)
class WorkflowDefinition:
    """
    Definição imutável de um workflow.

    Construída a partir do payload bruto (`flow name`, `param_store`,
    `steps`) via `from_dict`, que faz cópia profunda: o dicionário
    recebido nunca é alterado pela execução.
    """
    name: str
    param_store: Dict[str, Any] = field(default_factory=dict)
    steps: Tuple[Step, ...] = ()

    @classmethod
    def from_dict(cls, raw: Mapping[str, Any]) -> "WorkflowDefinition":
        data = deepcopy(dict(raw or {}))
        raw_steps: List[Any] = list(data.get("steps") or [])
        return cls(
            name=str(data.get("flow name") or data.get("name") or ""),
            param_store=dict(data.get("param_store") or {}),
            steps=tuple(Step.from_dict(s, index=i) for i, s in enumerate(raw_steps)),
        )


@dataclass(frozen=True)
class StepOutcome:
    """Resultado imutável de um step processado pelo executor."""
    step_id: str
    label: str
    status: StepStatus
    family: Optional[str] = None
    action: Optional[str] = None
    attempts: int = 0
    result: Any = None
