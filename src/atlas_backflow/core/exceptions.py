"""
Atlas BackFlow — Canonical Exceptions (v1)

Este módulo define exceções tipadas internas do Atlas BackFlow.

Objetivo:
- Permitir que handlers/engine levantem exceções semânticas tipadas
- Facilitar o mapeamento determinístico para BackflowErrorPayload
- Separar explicitamente falhas retentáveis (dispatch, validação)
  de falhas fatais (configuração)

Regras:
- Não contém lógica de backend específica.
- Exceções devem carregar apenas dados estruturados (serializáveis).
"""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Any, Dict, Optional


@dataclass(frozen=True)
class BackflowException(Exception):
    """Base class para exceções internas do Atlas BackFlow.

    Importante:
    - Sempre carregar dados estruturados em `details`
    - Não embedar stack trace em payloads de erro
    - Mensagem deve ser curta e humana
    """

    message: str
    details: Dict[str, Any] = field(default_factory=dict)
    hint: Optional[str] = None

    def __str__(self) -> str:  # pragma: no cover
        return self.message


# ---------------------------------------------------------------------------
# Dispatch (retentáveis)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class DispatchError(BackflowException):
    """Chamada ao backend alvo falhou (rede, query, job, broker)."""


@dataclass(frozen=True)
class StatusMismatchError(DispatchError):
    """Status HTTP retornado difere do status esperado pelo step."""


@dataclass(frozen=True)
class OperationTimeoutError(DispatchError):
    """Operação não concluiu dentro do tempo limite da corrida."""


@dataclass(frozen=True)
class CredentialResolutionError(DispatchError):
    """Não foi possível obter credenciais válidas para o provedor cloud."""


# ---------------------------------------------------------------------------
# Validação (retentável)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ValidationMismatch(BackflowException):
    """Resultado real não satisfaz `validate_response`."""


# ---------------------------------------------------------------------------
# Configuração (fatal, sem retry)
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class ConfigurationError(BackflowException):
    """Workflow inconsistente: nenhum retry consegue corrigir."""


@dataclass(frozen=True)
class UnknownOperationError(ConfigurationError):
    """Verbo ou família sem handler registrado."""


@dataclass(frozen=True)
class PlaceholderError(ConfigurationError):
    """Placeholder não pôde ser resolvido (ex.: increment não numérico)."""


# ---------------------------------------------------------------------------
# Engine
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class StepFailedError(BackflowException):
    """Step esgotou o orçamento de retry; encerra a run inteira."""
