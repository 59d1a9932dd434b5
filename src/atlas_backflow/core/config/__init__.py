# src/atlas_backflow/core/config/__init__.py
"""
Camada de configuração do Atlas BackFlow.

Este pacote reúne tudo o que é carregado *antes* da execução de um workflow:
    - definições de workflow em YAML ou JSON (`loader`)
    - settings do interpretador (timeouts, região cloud, brokers) (`settings`)
    - política de merge de settings e de parâmetros externos (`merge`)
    - fingerprint canônico do workflow para rastreabilidade (`hashing`)

Princípios fundamentais:
    - Configuração é declarativa e explícita
    - Overrides nunca mutam a estrutura base
    - Erros estruturais são fatais e tipados (`errors`)

Limites explícitos:
    - Não resolve placeholders (responsabilidade de `core.values`)
    - Não executa steps
"""

from .errors import (
    ConfigError,
    ConfigTypeConflictError,
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
    WorkflowNotFoundError,
)
from .hashing import compute_workflow_hash
from .loader import load_workflow
from .merge import deep_merge, merge_params
from .settings import DEFAULT_SETTINGS, load_settings

__all__ = [
    "ConfigError",
    "ConfigTypeConflictError",
    "InvalidConfigRootTypeError",
    "UnsupportedConfigFormatError",
    "WorkflowNotFoundError",
    "compute_workflow_hash",
    "load_workflow",
    "deep_merge",
    "merge_params",
    "DEFAULT_SETTINGS",
    "load_settings",
]
