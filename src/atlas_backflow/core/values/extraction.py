"""
Extrator de valores do Atlas BackFlow (`value_map`).

Navega o resultado de um dispatch e escreve 0..N chaves no param store.

Formas aceitas de `value_map`:
    - lista de nomes: copia cada campo de topo do resultado
    - mapa destino → caminho: `seg/seg[idx]/...|int`

Regras de navegação:
    - Resultado sequência é reduzido ao primeiro elemento (`None` se vazio)
    - `nome[idx]` acessa o índice `idx` do campo `nome`
    - Segmento numérico sobre lista acessa o índice
    - `|int` no fim do caminho converte o valor final para inteiro

Invariantes:
    - Caminho inexistente nunca aborta a run: o destino recebe `None`
      e um warning é registrado no RunContext (extraction miss)
    - O resultado do dispatch não é mutado
"""

from __future__ import annotations

import re
from copy import deepcopy
from typing import Any, Dict, Mapping, MutableMapping, Optional, Tuple, Union

from atlas_backflow.core.errors import extraction_miss
from atlas_backflow.core.pipeline.context import RunContext


_INDEXED_SEGMENT = re.compile(r"^(?P<name>[^\[\]]*)\[(?P<index>-?\d+)\]$")
_MISSING = object()


def unwrap_result(result: Any) -> Any:
    value = deepcopy(result)
    if isinstance(value, (list, tuple)):
        return value[0] if value else None
    return value


def _split_path(path: str) -> Tuple[str, Optional[str]]:
    if "|" in path:
        actual, _, kind = path.partition("|")
        return actual, kind.strip().lower() or None
    return path, None


def _access(value: Any, key: Any) -> Any:
    if value is None or value is _MISSING:
        return _MISSING
    if isinstance(value, Mapping):
        return value.get(key, _MISSING)
    if isinstance(value, (list, tuple)):
        try:
            index = int(key)
        except (TypeError, ValueError):
            return _MISSING
        return value[index] if -len(value) <= index < len(value) else _MISSING
    return _MISSING


def _coerce_int(value: Any) -> Any:
    if value is _MISSING or value is None:
        return _MISSING
    match = re.match(r"^\s*[-+]?\d+", str(value))
    return int(match.group(0)) if match else _MISSING


def extract_path(source: Any, path: Any) -> Any:
    """Valor no caminho `path` ou `_MISSING` quando algum segmento não existe."""
    if not isinstance(path, str):
        return source

    actual, kind = _split_path(path)
    value = source
    for segment in actual.split("/"):
        if not segment:
            continue
        indexed = _INDEXED_SEGMENT.match(segment)
        if indexed:
            name = indexed.group("name")
            container = _access(value, name) if name else value
            value = _access(container, indexed.group("index"))
        else:
            value = _access(value, segment)

    if kind == "int":
        value = _coerce_int(value)
    return value


def store_response_values(
    store: Union[RunContext, MutableMapping[str, Any]],
    value_map: Any,
    result: Any,
    *,
    step_id: str = "",
) -> Dict[str, Any]:
    """
    Escreve no param store os valores declarados em `value_map`.

    `store` é o RunContext da run (escrita via `set_param`, misses viram
    warnings) ou um mapeamento simples, sem registro de warnings.

    Returns:
        Dict[str, Any]: As chaves escritas e seus valores.
    """
    ctx = store if isinstance(store, RunContext) else None
    write = ctx.set_param if ctx is not None else store.__setitem__
    source = unwrap_result(result)
    written: Dict[str, Any] = {}

    if isinstance(value_map, Mapping):
        pairs = [(dest, path, extract_path(source, path)) for dest, path in value_map.items()]
    elif isinstance(value_map, (list, tuple)):
        pairs = [(name, name, _access(source, name)) for name in value_map]
    else:
        return written

    for destination, path, value in pairs:
        if value is _MISSING:
            value = None
            if ctx is not None:
                miss = extraction_miss(destination=str(destination), path=path, step=step_id)
                ctx.add_warning(step_id=step_id, message=f"{miss.message}: {destination} <- {path}")
        write(destination, value)
        written[destination] = value

    return written
