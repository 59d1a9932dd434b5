# src/atlas_backflow/core/config/hashing.py
"""
Fingerprint canônico de workflows do Atlas BackFlow.

O hash identifica estruturalmente a definição de workflow executada,
permitindo correlacionar eventos de log de runs diferentes do mesmo cenário.

Política de hashing (v1):
    - Serialização JSON canônica (chaves ordenadas, separadores compactos)
    - Valores não serializáveis convertidos via `str`
    - SHA-256 sobre UTF-8

Invariantes:
    - Workflows estruturalmente equivalentes produzem o mesmo hash
    - O valor é sempre hexadecimal com 64 caracteres
"""

import hashlib
import json
from typing import Any, Dict


def compute_workflow_hash(workflow: Dict[str, Any]) -> str:
    """
    Gera o hash determinístico de uma definição de workflow (payload bruto).

    Raises:
        TypeError: Se o objeto fornecido não for um dicionário.
    """
    if not isinstance(workflow, dict):
        raise TypeError(
            f"Workflow para hashing deve ser dict, recebido: {type(workflow).__name__}"
        )

    canonical_json = json.dumps(
        workflow,
        sort_keys=True,
        separators=(",", ":"),
        ensure_ascii=False,
        default=str,
    )
    return hashlib.sha256(canonical_json.encode("utf-8")).hexdigest()
