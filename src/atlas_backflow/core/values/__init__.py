# src/atlas_backflow/core/values/__init__.py
"""
Transformações puras de dados do Atlas BackFlow.

    - resolver   → substituição de placeholders `<<chave>>` e `increment`
    - validation → comparação recursiva com `validate_response`
    - extraction → escrita de `value_map` no param store

Nenhum destes módulos toca sistemas externos.
"""

from .extraction import extract_path, store_response_values, unwrap_result
from .resolver import resolve_values
from .validation import assert_matches, normalize_leaf, validate_response

__all__ = [
    "extract_path",
    "store_response_values",
    "unwrap_result",
    "resolve_values",
    "assert_matches",
    "normalize_leaf",
    "validate_response",
]
