"""
Resolver de placeholders do Atlas BackFlow.

Substitui placeholders `<<chave>>` em qualquer estrutura aninhada
(mapas, listas, escalares) usando o param store da run.

Regras (v1):
    - String exatamente `<<chave>>`  → valor do store, tipo preservado
    - String com `<<chave>>` embutido → substituição pela forma normalizada
      (`true`/`false`, `2.0` → `2`);
      chave ausente ou `None` vira string vazia
    - String na forma `increment(...)` → `int(store[ref]) + 1`, onde `ref` é o
      token entre delimitadores: `increment(a)`, `increment[a]`, `increment(<<a>>)`
    - Demais folhas (números, bool, None) passam inalteradas

Princípios fundamentais:
    - Função pura: a estrutura recebida nunca é mutada
    - Travessia em profundidade sobre mapas e sequências

Limites explícitos:
    - Não escreve no param store
    - Não avalia expressões além do incremento
"""

from __future__ import annotations

import re
from typing import Any, Mapping

from atlas_backflow.core.exceptions import PlaceholderError
from atlas_backflow.core.values.validation import normalize_leaf


PLACEHOLDER_PATTERN = re.compile(r"<<(.+?)>>")
INCREMENT_PATTERN = re.compile(r"^\s*increment\s*[\(\[](?P<reference>.*)[\)\]]\s*$")


def resolve_values(data: Any, params: Mapping[str, Any]) -> Any:
    """Retorna uma nova estrutura com todas as folhas string resolvidas."""
    if isinstance(data, Mapping):
        return {key: resolve_values(value, params) for key, value in data.items()}
    if isinstance(data, list):
        return [resolve_values(item, params) for item in data]
    if isinstance(data, tuple):
        return tuple(resolve_values(item, params) for item in data)
    if isinstance(data, str):
        return resolve_string(data, params)
    return data


def resolve_string(value: str, params: Mapping[str, Any]) -> Any:
    increment = INCREMENT_PATTERN.match(value)
    if increment:
        return _increment(value, increment.group("reference").strip(), params)
    return replace_placeholders(value, params)


def replace_placeholders(value: str, params: Mapping[str, Any]) -> Any:
    if value.startswith("<<") and value.endswith(">>") and len(value) > 4:
        inner = value[2:-2]
        if "<<" not in inner and ">>" not in inner:
            return params.get(inner)

    def _sub(match: "re.Match[str]") -> str:
        found = params.get(match.group(1))
        return "" if found is None else normalize_leaf(found)

    return PLACEHOLDER_PATTERN.sub(_sub, value)


def _increment(value: str, reference: str, params: Mapping[str, Any]) -> int:
    whole = PLACEHOLDER_PATTERN.fullmatch(reference)
    if whole:
        reference = whole.group(1)

    raw = params[reference] if reference in params else reference
    try:
        return int(str(raw).strip()) + 1
    except (TypeError, ValueError) as exc:
        raise PlaceholderError(
            message=f"Cannot increment non-integer value for {reference!r}: {raw!r}",
            details={"expression": value, "reference": reference, "value": raw},
            hint="O valor referenciado por `increment` deve ser um inteiro.",
        ) from exc
