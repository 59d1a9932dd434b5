"""
Executor de workflows do Atlas BackFlow.

O executor percorre os steps em ordem declarada e, para cada um:

    1. resolve placeholders do payload contra o param store
    2. respeita `skip_step`
    3. determina a família (explícita ou pela tabela de verbos)
    4. constrói o handler e invoca o verbo
    5. aplica o laço retry/validação com orçamento único
    6. escreve `value_map` no param store
    7. encerra a run em `return: true`
    8. aplica o `delay` pós-step

Política de falhas:
- Dispatch e validação consomem o mesmo orçamento de `retry`.
- Esgotado o orçamento, o último resultado é validado mais uma vez e o
  erro resultante encerra a run (`StepFailedError`), sem continuação parcial.
- Erros de configuração (verbo/família desconhecidos, placeholder inválido)
  são fatais imediatamente, sem retry.
- Falhas de extração nunca abortam a run.
"""

from __future__ import annotations

import json
import time
from dataclasses import dataclass, field, replace
from typing import Any, Callable, Dict, List, Mapping, Optional, Tuple

from atlas_backflow.core.config.hashing import compute_workflow_hash
from atlas_backflow.core.config.merge import merge_params
from atlas_backflow.core.config.settings import load_settings, section
from atlas_backflow.core.errors import exception_to_error
from atlas_backflow.core.exceptions import ConfigurationError, StepFailedError, ValidationMismatch
from atlas_backflow.core.pipeline.context import RunContext
from atlas_backflow.core.pipeline.handler import invoke_verb
from atlas_backflow.core.pipeline.registry import HandlerRegistry
from atlas_backflow.core.pipeline.types import Step, StepOutcome, StepStatus, WorkflowDefinition
from atlas_backflow.core.values.extraction import store_response_values
from atlas_backflow.core.values.resolver import resolve_values
from atlas_backflow.core.values.validation import validate_response
from atlas_backflow.handlers import build_default_registry


@dataclass(frozen=True)
class FlowResult:
    """Resultado agregado de uma run.

    `value` é o que a run entrega ao chamador: o param store final ou,
    quando algum step declarou `return: true`, o resultado daquele dispatch.
    """

    params: Dict[str, Any] = field(default_factory=dict)
    steps: List[StepOutcome] = field(default_factory=list)
    returned: bool = False
    value: Any = None


class FlowExecutor:
    """Executor canônico do Atlas BackFlow (resolve → despacha → valida → extrai)."""

    def __init__(
        self,
        *,
        workflow: WorkflowDefinition,
        registry: HandlerRegistry,
        ctx: Optional[RunContext] = None,
        external_params: Optional[Mapping[str, Any]] = None,
        sleep: Callable[[float], None] = time.sleep,
    ):
        self.workflow = workflow
        self.registry = registry
        self.ctx = ctx if ctx is not None else RunContext()
        self.external_params = dict(external_params or {})
        self._sleep = sleep

    # ------------------------------------------------------------------
    # Param store
    # ------------------------------------------------------------------

    def _seed_params(self) -> Dict[str, Any]:
        params = self.ctx.params
        overrides = {**params, **self.external_params}
        seeded = merge_params(self.workflow.param_store, overrides)
        params.clear()
        params.update(seeded)

        # o store é resolvido contra ele mesmo antes do primeiro step
        for key, value in resolve_values(dict(params), params).items():
            self.ctx.set_param(key, value)
        return params

    # ------------------------------------------------------------------
    # Retry / validação
    # ------------------------------------------------------------------

    def _wait(self, seconds: float) -> None:
        if seconds > 0:
            self._sleep(seconds)

    def _step_failed(self, step: Step, exc: BaseException, attempts: int) -> StepFailedError:
        error = exception_to_error(exc)
        return StepFailedError(
            message=f"{step.step_id} {step.label} failed after {attempts} attempt(s): {error.message}",
            details={
                "step": step.step_id,
                "name": step.label,
                "action": step.action,
                "family": step.family,
                "attempts": attempts,
                "error": error.to_dict(),
            },
            hint=error.hint,
        )

    def _invoke(self, step: Step) -> Any:
        handler = self.registry.create(step, self.ctx.settings)
        return invoke_verb(handler, step.action)

    def _dispatch_with_retry(self, step: Step) -> Tuple[Any, int]:
        remaining = step.retry
        attempts = 0

        while True:
            attempts += 1
            try:
                result = self._invoke(step)
            except ConfigurationError as exc:
                raise replace(exc, details={**exc.details, "step": step.step_id}) from None
            except Exception as exc:
                if remaining <= 0:
                    raise self._step_failed(step, exc, attempts) from exc
                self.ctx.log(
                    step_id=step.step_id,
                    level="warning",
                    message=f"dispatch failed ({remaining} retries left): {exc}",
                    error_type=exc.__class__.__name__,
                )
                remaining -= 1
                self._wait(step.retry_delay)
                continue

            try:
                validate_response(step, result)
                return result, attempts
            except ValidationMismatch as exc:
                if remaining <= 0:
                    break
                self.ctx.log(
                    step_id=step.step_id,
                    level="warning",
                    message=f"validation failed ({remaining} retries left): {exc}",
                    details=dict(exc.details),
                )
                remaining -= 1
                self._wait(step.retry_delay)

        # orçamento esgotado: a validação final produz o erro que encerra a run
        try:
            validate_response(step, result)
        except ValidationMismatch as final:
            raise self._step_failed(step, final, attempts) from final
        return result, attempts

    # ------------------------------------------------------------------
    # Run
    # ------------------------------------------------------------------

    def run(self) -> FlowResult:
        ctx = self.ctx
        params = self._seed_params()
        outcomes: List[StepOutcome] = []

        ctx.log(
            step_id="flow",
            level="info",
            message=f"flow started: {self.workflow.name}" if self.workflow.name else "flow started",
            steps=len(self.workflow.steps),
            workflow_hash=ctx.meta.get("workflow_hash"),
        )

        default_delay = section(ctx.settings, "engine").get("default_delay_seconds") or 0

        for declared in self.workflow.steps:
            step = declared.with_payload(resolve_values(declared.payload, params), default_delay=default_delay)
            sid = step.step_id
            ctx.log(step_id=sid, level="info", message=f"{sid} {step.label}".strip())

            if step.skip:
                ctx.log(step_id=sid, level="info", message=f"Skipping {sid}")
                outcomes.append(StepOutcome(step_id=sid, label=step.label, status=StepStatus.SKIPPED))
                continue

            try:
                family = self.registry.resolve_family(step)
            except ConfigurationError as exc:
                raise replace(exc, details={**exc.details, "step": sid}) from None

            result, attempts = self._dispatch_with_retry(step)

            if step.log:
                ctx.log(
                    step_id=sid,
                    level="info",
                    message=json.dumps(result, indent=2, default=str),
                    family=family,
                )

            if step.value_map is not None:
                store_response_values(ctx, step.value_map, result, step_id=sid)

            if step.returns:
                outcomes.append(
                    StepOutcome(sid, step.label, StepStatus.RETURNED, family, step.action, attempts, result)
                )
                ctx.log(step_id=sid, level="info", message="flow returned early")
                return FlowResult(params=params, steps=outcomes, returned=True, value=result)

            outcomes.append(StepOutcome(sid, step.label, StepStatus.SUCCESS, family, step.action, attempts, result))

            if step.delay:
                ctx.log(step_id=sid, level="info", message=f"Delaying for {step.delay:g} seconds...")
                self._wait(step.delay)

        ctx.log(step_id="flow", level="info", message="flow finished")
        return FlowResult(params=params, steps=outcomes, returned=False, value=params)


def run_flow(
    payload: Mapping[str, Any],
    external_params: Optional[Mapping[str, Any]] = None,
    *,
    registry: Optional[HandlerRegistry] = None,
    settings: Optional[Mapping[str, Any]] = None,
    sleep: Callable[[float], None] = time.sleep,
) -> Any:
    """
    Executa um workflow declarativo e retorna o param store final
    (ou o resultado do step com `return: true`).

    Args:
        payload: Workflow bruto (`flow name`, `param_store`, `steps`). Nunca é mutado.
        external_params: Parâmetros que sobrescrevem o seed do workflow.
        registry: Registry de handlers; por padrão todas as famílias embutidas.
        settings: Settings efetivos (ver `core.config.settings.load_settings`).
    """
    if registry is None:
        registry = build_default_registry()

    if settings is None:
        settings = load_settings()

    ctx = RunContext(
        settings=dict(settings),
        meta={
            "flow_name": payload.get("flow name"),
            "workflow_hash": compute_workflow_hash(dict(payload)),
        },
    )
    workflow = WorkflowDefinition.from_dict(payload)
    executor = FlowExecutor(
        workflow=workflow,
        registry=registry,
        ctx=ctx,
        external_params=external_params,
        sleep=sleep,
    )
    return executor.run().value
