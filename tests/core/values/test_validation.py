# tests/core/values/test_validation.py
"""
Testes do validador de respostas.

A igualdade entre folhas é feita por string normalizada; este contrato
frouxo é intencional (tolerância de formato entre backends).

Os testes asseguram que:
- chaves extras no resultado são ignoradas
- sequências são comparadas por posição
- a primeira divergência nomeia o caminho, o esperado e o real
- `validate_response: null` exige resultado None
"""

import pytest

from atlas_backflow.core.exceptions import ValidationMismatch
from atlas_backflow.core.pipeline.types import Step
from atlas_backflow.core.values.validation import assert_matches, normalize_leaf, validate_response


def test_string_normalized_match_ignores_extra_keys():
    expected = {"status": "ok", "items": [1, 2]}
    actual = {"status": "ok", "items": ["1", "2"], "extra": True}

    assert_matches(expected, actual)


def test_mismatch_names_the_key():
    with pytest.raises(ValidationMismatch) as exc:
        assert_matches({"status": "ok", "items": [1, 2]}, {"status": "fail", "items": [1, 2]})

    assert exc.value.details["path"] == "status"
    assert exc.value.details["expected"] == "ok"
    assert exc.value.details["actual"] == "fail"
    assert "status" in str(exc.value)


@pytest.mark.parametrize(
    "value, normalized",
    [(1, "1"), ("1", "1"), (True, "true"), (False, "false"), (None, "null"), (2.0, "2"), (2.5, "2.5")],
)
def test_normalize_leaf(value, normalized):
    assert normalize_leaf(value) == normalized


def test_nested_path_in_error():
    expected = {"data": {"orders": [{"id": 1}, {"id": 2}]}}
    actual = {"data": {"orders": [{"id": 1}, {"id": 3}]}}

    with pytest.raises(ValidationMismatch) as exc:
        assert_matches(expected, actual)

    assert exc.value.details["path"] == "data.orders[1].id"


def test_missing_container_fails():
    with pytest.raises(ValidationMismatch) as exc:
        assert_matches({"data": {"id": 1}}, {"other": 1})

    assert exc.value.details["path"] == "data"


def test_short_sequence_fails():
    with pytest.raises(ValidationMismatch):
        assert_matches([1, 2, 3], [1, 2])


def test_missing_leaf_matches_only_null():
    assert_matches({"deleted_at": None}, {})
    with pytest.raises(ValidationMismatch):
        assert_matches({"deleted_at": "x"}, {})


def test_validate_response_null_requires_none():
    step = Step.from_dict({"step": 4, "action": "select", "validate_response": None})

    validate_response(step, None)
    with pytest.raises(ValidationMismatch) as exc:
        validate_response(step, {"id": 1})

    assert exc.value.details["step"] == "step 4"


def test_no_expectation_means_no_validation():
    step = Step.from_dict({"action": "get"})

    validate_response(step, {"anything": "goes"})


def test_step_details_are_attached():
    step = Step.from_dict({"step": 2, "step name": "check", "action": "get", "validate_response": {"a": 1}})

    with pytest.raises(ValidationMismatch) as exc:
        validate_response(step, {"a": 2})

    assert exc.value.details["step"] == "step 2"
    assert exc.value.details["name"] == "check"
    assert exc.value.message.startswith("step 2 check")
