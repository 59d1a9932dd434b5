# src/atlas_backflow/core/config/merge.py
"""
Políticas de merge do Atlas BackFlow.

Dois merges distintos convivem aqui:

`deep_merge` (settings do interpretador):
    - dict → merge recursivo por chave
    - list → sobrescrita total
    - escalar → sobrescrita direta
    - conflito de tipos → ConfigTypeConflictError

`merge_params` (param store inicial):
    - merge raso: parâmetros externos vencem o seed do workflow
    - nenhum input é mutado

Invariantes:
    - A mesma entrada sempre produz a mesma saída
    - Os dicionários recebidos nunca são alterados
"""

from copy import deepcopy
from typing import Any, Dict, Mapping, Optional

from .errors import ConfigTypeConflictError


def deep_merge(base: Dict[str, Any], override: Dict[str, Any]) -> Dict[str, Any]:
    """
    Realiza um deep-merge determinístico entre settings base e overrides.

    `None` no override é tratado como valor explícito apenas quando a chave
    base também é `None`; caso contrário configura conflito de tipo.

    Args:
        base (Dict[str, Any]): Settings base (ex.: DEFAULT_SETTINGS).
        override (Dict[str, Any]): Overrides explícitos.

    Returns:
        Dict[str, Any]: Novo dicionário resultante.

    Raises:
        ConfigTypeConflictError: Se ocorrer conflito de tipo entre base e override.
    """
    if not isinstance(base, dict) or not isinstance(override, dict):
        raise ConfigTypeConflictError(
            message=(
                "Deep-merge requer dicts no nível raiz, recebido: "
                f"{type(base).__name__} vs {type(override).__name__}"
            ),
            details={"base": type(base).__name__, "override": type(override).__name__},
        )

    merged: Dict[str, Any] = deepcopy(base)

    for key, value in override.items():
        if key not in merged:
            merged[key] = deepcopy(value)
            continue

        current = merged[key]

        if isinstance(current, dict) and isinstance(value, dict):
            merged[key] = deep_merge(current, value)
        elif isinstance(value, list):
            merged[key] = deepcopy(value)
        elif _compatible(current, value):
            merged[key] = deepcopy(value)
        else:
            raise ConfigTypeConflictError(
                message=(
                    f"Conflito de tipo na chave '{key}': "
                    f"{type(current).__name__} vs {type(value).__name__}"
                ),
                details={"key": key},
            )

    return merged


def _compatible(current: Any, value: Any) -> bool:
    if type(current) is type(value):
        return True
    # int/float são intercambiáveis em timeouts e delays
    numeric = (int, float)
    return (
        isinstance(current, numeric)
        and isinstance(value, numeric)
        and not isinstance(current, bool)
        and not isinstance(value, bool)
    )


def merge_params(
    seed: Optional[Mapping[str, Any]],
    external: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """Param store inicial: seed do workflow sobrescrito por parâmetros externos."""
    params: Dict[str, Any] = deepcopy(dict(seed or {}))
    params.update(deepcopy(dict(external or {})))
    return params
