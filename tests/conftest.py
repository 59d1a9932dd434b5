# tests/conftest.py
"""
Fixtures compartilhados para testes do Atlas BackFlow.

Este módulo define fixtures reutilizáveis que fornecem:
- settings mínimos e determinísticos
- contexto de execução controlado (RunContext)
- handlers fake programáveis (sem I/O)
- um `sleep` que apenas registra as esperas solicitadas

O objetivo destas fixtures é permitir testes do core
(config, pipeline, values e engine) sem depender de:
- rede, banco, AWS ou Kafka
- variáveis de ambiente
- tempo real de relógio

Invariantes:
    - Nenhuma fixture realiza I/O
    - Nenhuma fixture dorme de verdade
    - Handlers fake registram cada invocação para inspeção

Limites explícitos:
    - Não substituir testes dos handlers reais (ver tests/handlers)
    - Não conter lógica de domínio
"""

from datetime import datetime, timezone

import pytest


@pytest.fixture
def dummy_settings() -> dict:
    """
    Settings já resolvidos, com timeouts curtos.

    Returns:
        dict: Settings compatíveis com `load_settings()`.
    """
    from atlas_backflow.core.config.settings import load_settings

    return load_settings(overrides={"api": {"timeout_seconds": 5}})


@pytest.fixture
def dummy_ctx(dummy_settings):
    """
    RunContext determinístico para testes.

    - `run_id` e `created_at` fixos
    - settings injetados explicitamente
    - param store vazio
    """
    from atlas_backflow.core.pipeline.context import RunContext

    return RunContext(
        run_id="run-test-001",
        created_at=datetime(2026, 1, 16, 0, 0, 0, tzinfo=timezone.utc),
        settings=dummy_settings,
        meta={"source": "pytest"},
    )


@pytest.fixture
def recording_sleep():
    """`sleep` substituto: registra os segundos pedidos e retorna imediatamente."""

    calls = []

    def _sleep(seconds):
        calls.append(seconds)

    _sleep.calls = calls
    return _sleep


@pytest.fixture
def FakeHandler():
    """
    Fixture factory que fornece um handler duck-typed programável.

    Uso:
        handler_cls = FakeHandler(family="api", responses=[{"id": 1}])
        registry.register("api", handler_cls)

    `responses` é consumido em ordem, uma entrada por invocação; uma
    entrada que é instância de Exception é levantada em vez de retornada.
    A última entrada se repete quando a lista acaba.

    Atributos de classe para inspeção:
        - calls: lista de (verb, payload) por invocação
        - built: número de instâncias construídas

    Returns:
        Callable[..., type]: Construtor de classes de handler fake.
    """

    def _make(family="api", verbs=None, responses=None):
        from atlas_backflow.core.pipeline.handler import invoke_verb
        from atlas_backflow.core.pipeline.registry import VERB_FAMILY

        queue = list(responses if responses is not None else [None])
        family_verbs = frozenset(verbs or [v for v, f in VERB_FAMILY.items() if f == family])

        class _FakeHandler:
            calls = []
            built = 0

            def __init__(self, step, settings=None):
                type(self).built += 1
                self.step = step
                self.settings = settings

            def invoke(self, verb):
                return invoke_verb(self, verb)

            def __getattr__(self, name):
                if name not in family_verbs:
                    raise AttributeError(name)

                def _call():
                    type(self).calls.append((name, self.step))
                    outcome = queue.pop(0) if len(queue) > 1 else queue[0]
                    if isinstance(outcome, Exception):
                        raise outcome
                    return outcome

                return _call

        _FakeHandler.family = family
        _FakeHandler.verbs = family_verbs
        return _FakeHandler

    return _make


@pytest.fixture
def fake_registry(FakeHandler):
    """Registry com um único handler fake para a família `api`."""

    def _build(responses=None, family="api"):
        from atlas_backflow.core.pipeline.registry import HandlerRegistry

        handler_cls = FakeHandler(family=family, responses=responses)
        registry = HandlerRegistry()
        registry.register(family, handler_cls)
        return registry, handler_cls

    return _build
