"""
Registro explícito de handlers do Atlas BackFlow.

Este módulo define o `HandlerRegistry`, que mapeia o nome de uma família
de operação para a factory do seu handler, e a tabela fixa verbo → família
usada quando o step não declara `type`.

O registry substitui qualquer forma de avaliação dinâmica de identificadores:
o despacho é sempre lookup-and-call sobre um mapeamento estático,
populado uma única vez na inicialização.

Responsabilidades do módulo:
    - Validar unicidade de famílias registradas
    - Normalizar aliases de `type` (ex.: "API", "DB", "AWS")
    - Inferir a família a partir do verbo
    - Construir o handler de um step

Invariantes:
    - Cada família possui no máximo uma factory
    - Verbo ou família desconhecidos geram `UnknownOperationError` (fatal)

Limites explícitos:
    - Não executa verbos
    - Não conhece detalhes de backend
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, List, Mapping, Optional

from atlas_backflow.core.errors import unknown_operation

from .handler import HandlerFactory, OperationHandler
from .types import OperationFamily, Step


VERB_FAMILY: Dict[str, str] = {
    "get": OperationFamily.API.value,
    "post": OperationFamily.API.value,
    "put": OperationFamily.API.value,
    "patch": OperationFamily.API.value,
    "delete": OperationFamily.API.value,
    "graphql": OperationFamily.API.value,
    "select": OperationFamily.DATABASE.value,
    "insert": OperationFamily.DATABASE.value,
    "update": OperationFamily.DATABASE.value,
    "deletedb": OperationFamily.DATABASE.value,
    "count": OperationFamily.DATABASE.value,
    "read": OperationFamily.FILE.value,
    "write": OperationFamily.FILE.value,
    "s3upload": OperationFamily.CLOUD.value,
    "s3download": OperationFamily.CLOUD.value,
    "batch": OperationFamily.CLOUD.value,
    "secrets": OperationFamily.CLOUD.value,
    "invoke_lambda": OperationFamily.CLOUD.value,
    "send_sqs": OperationFamily.CLOUD.value,
    "receive_sqs": OperationFamily.CLOUD.value,
    "athena": OperationFamily.CLOUD.value,
    "send_event": OperationFamily.MESSAGING.value,
    "read_event": OperationFamily.MESSAGING.value,
}

# Nomes históricos aceitos no campo `type` dos workflows.
FAMILY_ALIASES: Dict[str, str] = {
    "api": OperationFamily.API.value,
    "db": OperationFamily.DATABASE.value,
    "database": OperationFamily.DATABASE.value,
    "data": OperationFamily.FILE.value,
    "file": OperationFamily.FILE.value,
    "aws": OperationFamily.CLOUD.value,
    "cloud": OperationFamily.CLOUD.value,
    "kafkahandler": OperationFamily.MESSAGING.value,
    "kafka": OperationFamily.MESSAGING.value,
    "messaging": OperationFamily.MESSAGING.value,
}


class DuplicateFamilyError(ValueError):
    """
    Exceção levantada ao registrar duas factories para a mesma família.

    A duplicidade é tratada como erro de montagem do interpretador,
    detectada no registro e nunca durante a execução de um workflow.
    """


def normalize_family(name: Optional[str]) -> Optional[str]:
    if name is None:
        return None
    key = str(name).strip().lower()
    return FAMILY_ALIASES.get(key, key)


@dataclass
class HandlerRegistry:
    """
    Registro canônico família → factory de handler.

    A ordem de registro é preservada para inspeção (`families`).
    """

    _factories: Dict[str, HandlerFactory] = field(default_factory=dict, init=False, repr=False)
    _order: List[str] = field(default_factory=list, init=False, repr=False)

    def register(self, family: str, factory: HandlerFactory) -> None:
        name = normalize_family(family)
        if not name:
            raise ValueError("family must be a non-empty string")
        if not callable(factory):
            raise TypeError(f"factory for {name!r} must be callable")

        if name in self._factories:
            raise DuplicateFamilyError(f"Duplicate handler family: {name}")

        self._factories[name] = factory
        self._order.append(name)

    def families(self) -> List[str]:
        return list(self._order)

    def has(self, family: str) -> bool:
        return normalize_family(family) in self._factories

    def resolve_family(self, step: Step) -> str:
        """Família explícita (`type`) ou inferida pela tabela de verbos."""
        family = normalize_family(step.family) or VERB_FAMILY.get(step.action)
        if family is None or family not in self._factories:
            raise unknown_operation(family=step.family or family, action=step.action, step=step.step_id)
        return family

    def create(
        self,
        step: Step,
        settings: Optional[Mapping[str, Any]] = None,
    ) -> OperationHandler:
        family = self.resolve_family(step)
        factory = self._factories[family]
        return factory(step.payload, settings)
