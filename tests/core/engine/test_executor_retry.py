# tests/core/engine/test_executor_retry.py
"""
Testes do laço retry/validação do FlowExecutor.

Este módulo valida a política de orçamento único de retry:
- falhas de validação e de dispatch consomem o mesmo orçamento
- com `retry = N` e falha permanente, o handler é invocado N+1 vezes
- sucesso na K-ésima tentativa encerra o laço com exatamente K invocações
- esgotado o orçamento, o erro final encerra a run (`StepFailedError`)
- erros de configuração são fatais na primeira ocorrência

Decisões arquiteturais:
    - O `sleep` é injetado para que nenhum teste espere de verdade
    - Handlers fake são programados com uma fila de respostas

Limites explícitos:
    - Não valida handlers reais
"""

import pytest

try:
    from atlas_backflow.core.engine.engine import FlowExecutor
    from atlas_backflow.core.exceptions import (
        DispatchError,
        PlaceholderError,
        StepFailedError,
        UnknownOperationError,
    )
    from atlas_backflow.core.pipeline.types import WorkflowDefinition
except Exception as e:  # noqa: BLE001
    FlowExecutor = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing FlowExecutor. Implement:
- src/atlas_backflow/core/engine/engine.py (FlowExecutor)
Import error: {_IMPORT_ERR}
""")


def _executor(steps, registry, ctx, sleep, param_store=None):
    workflow = WorkflowDefinition.from_dict({"flow name": "t", "param_store": param_store or {}, "steps": steps})
    return FlowExecutor(workflow=workflow, registry=registry, ctx=ctx, sleep=sleep)


def test_permanent_validation_failure_invokes_n_plus_one_times(fake_registry, dummy_ctx, recording_sleep):
    """
    `retry = 2` com validação sempre falhando → 3 invocações.

    Invariantes:
        - O erro final reflete a última tentativa
        - Entre tentativas o executor espera `retry_delay` (default = delay)
    """
    _require_imports()
    registry, handler_cls = fake_registry(responses=[{"status": "fail"}])
    steps = [{"step": 1, "action": "get", "retry": 2, "delay": 1, "validate_response": {"status": "ok"}}]

    with pytest.raises(StepFailedError) as exc:
        _executor(steps, registry, dummy_ctx, recording_sleep).run()

    assert len(handler_cls.calls) == 3
    assert recording_sleep.calls == [1.0, 1.0]
    assert exc.value.details["attempts"] == 3
    assert exc.value.details["error"]["type"] == "VALIDATION_MISMATCH"
    assert exc.value.details["error"]["details"]["path"] == "status"


def test_success_on_kth_attempt_stops_retrying(fake_registry, dummy_ctx, recording_sleep):
    _require_imports()
    registry, handler_cls = fake_registry(
        responses=[{"status": "pending"}, {"status": "pending"}, {"status": "ok"}, {"status": "late"}]
    )
    steps = [{"action": "get", "retry": 5, "validate_response": {"status": "ok"}}]

    result = _executor(steps, registry, dummy_ctx, recording_sleep).run()

    assert len(handler_cls.calls) == 3
    assert result.steps[0].attempts == 3
    assert result.steps[0].result == {"status": "ok"}


def test_dispatch_errors_share_the_budget(fake_registry, dummy_ctx, recording_sleep):
    _require_imports()
    registry, handler_cls = fake_registry(
        responses=[DispatchError(message="503"), {"status": "fail"}, {"status": "ok"}]
    )
    steps = [{"action": "get", "retry": 2, "validate_response": {"status": "ok"}}]

    result = _executor(steps, registry, dummy_ctx, recording_sleep).run()

    assert len(handler_cls.calls) == 3
    assert result.steps[0].attempts == 3


def test_dispatch_failure_after_budget_is_chained(fake_registry, dummy_ctx, recording_sleep):
    _require_imports()
    boom = RuntimeError("connection reset")
    registry, handler_cls = fake_registry(responses=[boom])
    steps = [{"step": 7, "action": "post", "retry": 1}]

    with pytest.raises(StepFailedError) as exc:
        _executor(steps, registry, dummy_ctx, recording_sleep).run()

    assert len(handler_cls.calls) == 2
    assert exc.value.__cause__ is boom
    assert exc.value.details["step"] == "step 7"
    assert exc.value.details["error"]["details"]["exception_class"] == "RuntimeError"


def test_no_retry_means_single_attempt(fake_registry, dummy_ctx, recording_sleep):
    _require_imports()
    registry, handler_cls = fake_registry(responses=[{"status": "fail"}])
    steps = [{"action": "get", "validate_response": {"status": "ok"}}]

    with pytest.raises(StepFailedError):
        _executor(steps, registry, dummy_ctx, recording_sleep).run()

    assert len(handler_cls.calls) == 1
    assert recording_sleep.calls == []


def test_configuration_error_from_handler_is_not_retried(fake_registry, dummy_ctx, recording_sleep):
    _require_imports()
    registry, handler_cls = fake_registry(responses=[PlaceholderError(message="bad increment")])
    steps = [{"step": 2, "action": "get", "retry": 3}]

    with pytest.raises(PlaceholderError) as exc:
        _executor(steps, registry, dummy_ctx, recording_sleep).run()

    assert len(handler_cls.calls) == 1
    assert exc.value.details["step"] == "step 2"


def test_unknown_verb_is_fatal_before_dispatch(fake_registry, dummy_ctx, recording_sleep):
    _require_imports()
    registry, handler_cls = fake_registry()
    steps = [{"action": "teleport", "retry": 3}]

    with pytest.raises(UnknownOperationError):
        _executor(steps, registry, dummy_ctx, recording_sleep).run()

    assert handler_cls.built == 0


def test_verb_outside_explicit_family_is_fatal(fake_registry, dummy_ctx, recording_sleep):
    """`type: API` com verbo de banco: a família não expõe o verbo."""
    _require_imports()
    registry, handler_cls = fake_registry()
    steps = [{"action": "select", "type": "API", "retry": 2}]

    with pytest.raises(UnknownOperationError):
        _executor(steps, registry, dummy_ctx, recording_sleep).run()

    assert handler_cls.calls == []


def test_retry_warnings_are_logged(fake_registry, dummy_ctx, recording_sleep):
    _require_imports()
    registry, _ = fake_registry(responses=[{"s": 0}, {"s": 1}])
    steps = [{"action": "get", "retry": 1, "validate_response": {"s": 1}}]

    _executor(steps, registry, dummy_ctx, recording_sleep).run()

    messages = [e["message"] for e in dummy_ctx.events if e["level"] == "warning"]
    assert any("validation failed" in m for m in messages)
