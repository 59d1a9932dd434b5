# src/atlas_backflow/core/pipeline/__init__.py
"""
# Pipeline Core — Atlas BackFlow

Este pacote define os **contratos canônicos** e as **estruturas fundamentais**
que compõem um workflow declarativo no Atlas BackFlow.

## Componentes

- **types**
  - `OperationFamily`: famílias de backend
  - `StepStatus`: estados finais de step
  - `Step`, `WorkflowDefinition`, `StepOutcome`

- **handler**
  - `OperationHandler` (Protocol): "dado um verbo, produza um resultado ou falhe"

- **context**
  - `RunContext`: param store, settings, eventos e warnings da run

- **registry**
  - `HandlerRegistry`: família → factory, tabela verbo → família

## Princípios Fundamentais

- Handlers **não conhecem** o executor
- Comunicação entre steps ocorre **apenas via param store do RunContext**
- Despacho é lookup explícito, nunca avaliação de código
"""

from .context import RunContext
from .handler import OperationHandler, invoke_verb
from .registry import DuplicateFamilyError, HandlerRegistry, VERB_FAMILY
from .types import OperationFamily, Step, StepOutcome, StepStatus, WorkflowDefinition

__all__ = [
    "RunContext",
    "OperationHandler",
    "invoke_verb",
    "DuplicateFamilyError",
    "HandlerRegistry",
    "VERB_FAMILY",
    "OperationFamily",
    "Step",
    "StepOutcome",
    "StepStatus",
    "WorkflowDefinition",
]
