# tests/core/values/test_extraction.py
"""
Testes do extrator de valores (`value_map`).

Invariantes:
    - Caminho inexistente nunca levanta exceção: o destino recebe None
      e um warning é registrado no RunContext
    - Resultados sequência são reduzidos ao primeiro elemento
    - O resultado do dispatch não é mutado
"""

from atlas_backflow.core.values.extraction import extract_path, store_response_values, unwrap_result


def test_indexed_path_with_int_coercion():
    params = {}
    result = {"data": {"items": [{"id": "42"}]}}

    written = store_response_values(params, {"item_id": "data/items[0]/id|int"}, result)

    assert params == {"item_id": 42}
    assert written == {"item_id": 42}


def test_missing_path_writes_none_and_warns(dummy_ctx):
    dummy_ctx.set_param("keep", 1)

    store_response_values(dummy_ctx, {"gone": "data/missing"}, {"data": {}}, step_id="step 1")

    assert dummy_ctx.params == {"keep": 1, "gone": None}
    assert "step 1" in dummy_ctx.warnings
    assert "gone" in dummy_ctx.warnings["step 1"][0]


def test_sequence_result_uses_first_element():
    params = {}
    store_response_values(params, {"id": "id"}, [{"id": 1}, {"id": 2}])

    assert params == {"id": 1}


def test_empty_sequence_result_is_a_miss():
    params = {}
    store_response_values(params, {"id": "id"}, [])

    assert params == {"id": None}


def test_list_form_copies_top_level_fields():
    params = {}
    store_response_values(params, ["id", "name", "absent"], {"id": 3, "name": "ana", "x": 0})

    assert params == {"id": 3, "name": "ana", "absent": None}


def test_numeric_segment_indexes_lists():
    source = {"rows": [[10, 11], [20, 21]]}

    assert extract_path(source, "rows/1/0") == 20


def test_top_level_index_segment():
    assert extract_path({"x": 1}, "x") == 1
    assert extract_path([5, 6], "[1]") == 6


def test_int_coercion_uses_leading_digits():
    assert extract_path({"n": "12abc"}, "n|int") == 12


def test_falsy_values_are_extracted():
    params = {}
    store_response_values(params, {"flag": "active", "count": "n"}, {"active": False, "n": 0})

    assert params == {"flag": False, "count": 0}


def test_result_is_not_mutated():
    result = [{"data": {"id": 1}}]
    params = {}
    store_response_values(params, {"data": "data"}, result)
    params["data"]["id"] = 99

    assert result == [{"data": {"id": 1}}]
    assert unwrap_result(result) == {"data": {"id": 1}}
