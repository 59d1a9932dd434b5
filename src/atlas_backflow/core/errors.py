"""
Atlas BackFlow — Canonical Error Structures (v1)

Este módulo define o padrão canônico de erros do Atlas BackFlow.
Erros são artefatos de execução e fazem parte do contrato operacional
do interpretador, devendo ser:

- explícitos
- serializáveis
- rastreáveis até o step que falhou

O catálogo distingue as quatro categorias de falha do interpretador:
dispatch, validação, extração e configuração.
"""

from __future__ import annotations

from dataclasses import dataclass, asdict
from typing import Any, Dict, Optional

from .exceptions import (
    BackflowException,
    ConfigurationError,
    DispatchError,
    StatusMismatchError,
    OperationTimeoutError,
    CredentialResolutionError,
    ValidationMismatch,
    UnknownOperationError,
    PlaceholderError,
    StepFailedError,
)


# ---------------------------------------------------------------------------
# Payload canônico
# ---------------------------------------------------------------------------

@dataclass(frozen=True)
class BackflowErrorPayload:
    """
    Payload canônico de erro do Atlas BackFlow.

    Campos:
    - type: código estável do erro (não é texto livre)
    - message: mensagem curta, humana e objetiva
    - details: dados estruturados relevantes para diagnóstico
      (step, endpoint, expected/actual, status...)
    - hint: ação sugerida ao operador (onde corrigir)
    - retryable: indica se a falha consome o orçamento de retry do step
    """

    type: str
    message: str
    details: Dict[str, Any]
    hint: Optional[str] = None
    retryable: bool = False

    def to_dict(self) -> Dict[str, Any]:
        """Retorna representação serializável do erro."""
        return asdict(self)


# ---------------------------------------------------------------------------
# Catálogo canônico de tipos de erro (v1)
# ---------------------------------------------------------------------------

# Dispatch
DISPATCH_ERROR = "DISPATCH_ERROR"
DISPATCH_STATUS_MISMATCH = "DISPATCH_STATUS_MISMATCH"
DISPATCH_TIMEOUT = "DISPATCH_TIMEOUT"
DISPATCH_CREDENTIALS = "DISPATCH_CREDENTIALS"

# Validação / extração
VALIDATION_MISMATCH = "VALIDATION_MISMATCH"
EXTRACTION_MISS = "EXTRACTION_MISS"

# Configuração
CONFIG_UNKNOWN_OPERATION = "CONFIG_UNKNOWN_OPERATION"
CONFIG_PLACEHOLDER = "CONFIG_PLACEHOLDER"
CONFIG_ERROR = "CONFIG_ERROR"

# Engine
ENGINE_STEP_FAILED = "ENGINE_STEP_FAILED"
ENGINE_EXECUTION_ERROR = "ENGINE_EXECUTION_ERROR"


# Ordem importa: subclasses antes das bases.
_EXCEPTION_CODES = (
    (StatusMismatchError, DISPATCH_STATUS_MISMATCH),
    (OperationTimeoutError, DISPATCH_TIMEOUT),
    (CredentialResolutionError, DISPATCH_CREDENTIALS),
    (DispatchError, DISPATCH_ERROR),
    (ValidationMismatch, VALIDATION_MISMATCH),
    (UnknownOperationError, CONFIG_UNKNOWN_OPERATION),
    (PlaceholderError, CONFIG_PLACEHOLDER),
    (ConfigurationError, CONFIG_ERROR),
    (StepFailedError, ENGINE_STEP_FAILED),
)


def error_code_for(exc: BaseException) -> str:
    for cls, code in _EXCEPTION_CODES:
        if isinstance(exc, cls):
            return code
    return ENGINE_EXECUTION_ERROR


def is_retryable(exc: BaseException) -> bool:
    """Falhas de configuração são fatais; todo o resto consome retry."""
    return not isinstance(exc, ConfigurationError)


def exception_to_error(exc: BaseException) -> BackflowErrorPayload:
    """Converte exceções em BackflowErrorPayload (serializável, acionável).

    Regras:
    - BackflowException: já vem com message/details/hint.
    - Outras exceções (SDKs, rede, I/O): encapsular como dispatch genérico
      sem expor stack trace.
    """
    if isinstance(exc, BackflowException):
        return BackflowErrorPayload(
            type=error_code_for(exc),
            message=str(exc) or "Erro de execução",
            details=dict(exc.details or {}),
            hint=exc.hint,
            retryable=is_retryable(exc),
        )

    return BackflowErrorPayload(
        type=ENGINE_EXECUTION_ERROR,
        message=str(exc) or "Erro inesperado durante execução",
        details={
            "exception_class": exc.__class__.__name__,
        },
        hint="Verifique o log técnico e o payload do step",
        retryable=True,
    )


# ---------------------------------------------------------------------------
# Helpers de fábrica
# ---------------------------------------------------------------------------

def extraction_miss(
    *,
    destination: str,
    path: Any,
    step: Optional[str] = None,
    hint: str = "Confira o caminho declarado em value_map contra a resposta real do step.",
) -> BackflowErrorPayload:
    return BackflowErrorPayload(
        type=EXTRACTION_MISS,
        message="Caminho de extração não encontrado na resposta",
        details={
            "destination": destination,
            "path": path,
            "step": step,
        },
        hint=hint,
        retryable=False,
    )


def unknown_operation(
    *,
    family: Optional[str],
    action: Optional[str],
    step: Optional[str] = None,
    hint: str = "Declare um `action` suportado ou um `type` explícito com handler registrado.",
) -> UnknownOperationError:
    return UnknownOperationError(
        message=f"No handler registered for family={family!r} action={action!r}",
        details={
            "family": family,
            "action": action,
            "step": step,
        },
        hint=hint,
    )
