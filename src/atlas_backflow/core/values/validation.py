"""
Validador de respostas do Atlas BackFlow.

Compara recursivamente a estrutura esperada (`validate_response`) com o
resultado real de um dispatch.

Semântica de comparação (v1):
    - Folhas comparadas por igualdade de string normalizada:
      `1 == "1"`, `True == "true"`, `None == "null"`, `2.0 == "2"`
    - Mapas: apenas chaves presentes no esperado são checadas
    - Sequências: comparação posicional sobre os índices esperados
    - `validate_response: null` só passa quando o resultado é `None`

A igualdade frouxa entre número e string é intencional (tolerância de
formato entre backends) e faz parte do contrato de compatibilidade.

Invariantes:
    - A primeira divergência levanta `ValidationMismatch` com
      `path`, `expected` e `actual`
    - Nenhum input é mutado
"""

from __future__ import annotations

from typing import Any, Mapping, Sequence

from atlas_backflow.core.exceptions import ValidationMismatch
from atlas_backflow.core.pipeline.types import Step


_MISSING = object()


def normalize_leaf(value: Any) -> str:
    if value is _MISSING or value is None:
        return "null"
    if isinstance(value, bool):
        return "true" if value else "false"
    if isinstance(value, float) and value.is_integer():
        return str(int(value))
    return str(value)


def validate_response(step: Step, actual: Any) -> None:
    """Valida `actual` contra `validate_response` do step, quando declarado."""
    if not step.has_validation:
        return

    expected = step.expected
    try:
        assert_matches(expected, actual)
    except ValidationMismatch as exc:
        details = dict(exc.details)
        details["step"] = step.step_id
        details["name"] = step.label
        raise ValidationMismatch(message=f"{step.step_id} {step.label}: {exc.message}", details=details) from None


def assert_matches(expected: Any, actual: Any, path: str = "") -> None:
    if expected is None and not path:
        if actual is not None:
            _mismatch(path, expected, actual, f"Response should be null but got {actual!r}")
        return

    if isinstance(expected, Mapping):
        _assert_mapping(expected, actual, path)
    elif isinstance(expected, (list, tuple)):
        _assert_sequence(expected, actual, path)
    else:
        if normalize_leaf(expected) != normalize_leaf(actual):
            _mismatch(path, expected, actual)


def _assert_mapping(expected: Mapping[str, Any], actual: Any, path: str) -> None:
    for key, value in expected.items():
        child = f"{path}.{key}" if path else str(key)
        found = actual.get(key, _MISSING) if isinstance(actual, Mapping) else _MISSING
        if found is _MISSING and isinstance(value, (Mapping, list, tuple)):
            _mismatch(child, value, None)
        assert_matches(value, None if found is _MISSING else found, child)


def _assert_sequence(expected: Sequence[Any], actual: Any, path: str) -> None:
    items = actual if isinstance(actual, (list, tuple)) else None
    for i, value in enumerate(expected):
        child = f"{path}[{i}]"
        found = items[i] if items is not None and i < len(items) else _MISSING
        if found is _MISSING and isinstance(value, (Mapping, list, tuple)):
            _mismatch(child, value, None)
        assert_matches(value, None if found is _MISSING else found, child)


def _mismatch(path: str, expected: Any, actual: Any, message: str = "") -> None:
    label = f"Key: {path} " if path else ""
    raise ValidationMismatch(
        message=message or f"{label}Expected: {expected!r} Actual: {actual!r}",
        details={"path": path, "expected": expected, "actual": actual},
    )
