# src/atlas_backflow/__init__.py
"""
Atlas BackFlow — interpretador declarativo de workflows de integração.

Um workflow é uma lista ordenada de steps (chamadas HTTP/GraphQL, comandos
SQL, I/O de arquivos, S3, Batch, Secrets, Lambda, SQS, Athena, Kafka) e um
param store compartilhado. Retry, validação de resposta, extração de valores
e passagem de parâmetros entre steps são tratados de forma uniforme,
independente do backend alvo.

Arquitetura em alto nível:
    - core.config   → workflows e settings (YAML/JSON), merge, hashing
    - core.pipeline → tipos, RunContext, protocolo de handler, registry
    - core.values   → resolver, validador, extrator
    - core.engine   → executor sequencial
    - handlers      → uma família de handler por backend

Limites explícitos:
    - Não automatiza navegador nem UI
    - Não persiste estado de workflow entre processos
"""

from .core.engine.engine import FlowExecutor, FlowResult, run_flow
from .core.config.loader import load_workflow
from .core.config.settings import load_settings

__all__ = ["FlowExecutor", "FlowResult", "run_flow", "load_workflow", "load_settings"]
