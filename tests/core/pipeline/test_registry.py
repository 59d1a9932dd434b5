# tests/core/pipeline/test_registry.py
"""
Testes do HandlerRegistry.

Este módulo valida:
- unicidade de famílias registradas
- normalização de aliases históricos de `type`
- inferência de família pela tabela verbo → família
- rejeição fatal de verbos e famílias desconhecidos

Decisões arquiteturais:
    - O despacho é sempre lookup explícito sobre mapeamento estático
    - Duplicidade é erro de montagem, detectado no registro

Limites explícitos:
    - Não executa verbos de handlers reais
"""

import pytest

try:
    from atlas_backflow.core.exceptions import ConfigurationError, UnknownOperationError
    from atlas_backflow.core.pipeline.registry import (
        VERB_FAMILY,
        DuplicateFamilyError,
        HandlerRegistry,
        normalize_family,
    )
    from atlas_backflow.core.pipeline.types import Step
except Exception as e:  # noqa: BLE001
    HandlerRegistry = None
    _IMPORT_ERR = e
else:
    _IMPORT_ERR = None


def _require_imports():
    if _IMPORT_ERR is not None:
        pytest.fail(f"""Missing HandlerRegistry. Implement:
- src/atlas_backflow/core/pipeline/registry.py (HandlerRegistry, VERB_FAMILY)
Import error: {_IMPORT_ERR}
""")


def test_duplicate_family_is_rejected(FakeHandler):
    """
    Registrar duas factories para a mesma família falha imediatamente.

    Invariantes:
        - Aliases contam como a mesma família ("DB" == "database")
    """
    _require_imports()
    registry = HandlerRegistry()
    registry.register("database", FakeHandler(family="database"))

    with pytest.raises(DuplicateFamilyError):
        registry.register("DB", FakeHandler(family="database"))


def test_families_preserve_registration_order(FakeHandler):
    _require_imports()
    registry = HandlerRegistry()
    registry.register("file", FakeHandler(family="file"))
    registry.register("api", FakeHandler(family="api"))

    assert registry.families() == ["file", "api"]
    assert registry.has("API")
    assert not registry.has("cloud")


@pytest.mark.parametrize(
    "alias, family",
    [("API", "api"), ("DB", "database"), ("Data", "file"), ("AWS", "cloud"), ("KafkaHandler", "messaging")],
)
def test_historical_type_aliases(alias, family):
    _require_imports()
    assert normalize_family(alias) == family


def test_family_inferred_from_verb(FakeHandler):
    _require_imports()
    registry = HandlerRegistry()
    registry.register("database", FakeHandler(family="database"))

    step = Step.from_dict({"action": "DeleteDB"})

    assert registry.resolve_family(step) == "database"
    assert VERB_FAMILY["deletedb"] == "database"


def test_explicit_type_wins_over_verb_table(FakeHandler):
    _require_imports()
    registry = HandlerRegistry()
    registry.register("api", FakeHandler(family="api"))
    registry.register("file", FakeHandler(family="file"))

    step = Step.from_dict({"action": "read", "type": "API"})

    assert registry.resolve_family(step) == "api"


def test_unknown_verb_is_configuration_error(FakeHandler):
    """Verbo fora da tabela e sem `type` é fatal (não consome retry)."""
    _require_imports()
    registry = HandlerRegistry()
    registry.register("api", FakeHandler(family="api"))

    with pytest.raises(UnknownOperationError) as exc:
        registry.resolve_family(Step.from_dict({"step": 3, "action": "teleport"}))

    assert isinstance(exc.value, ConfigurationError)
    assert exc.value.details["action"] == "teleport"
    assert exc.value.details["step"] == "step 3"


def test_known_verb_without_registered_family_is_rejected(FakeHandler):
    _require_imports()
    registry = HandlerRegistry()
    registry.register("api", FakeHandler(family="api"))

    with pytest.raises(UnknownOperationError):
        registry.resolve_family(Step.from_dict({"action": "send_event"}))


def test_create_passes_payload_and_settings(FakeHandler):
    _require_imports()
    handler_cls = FakeHandler(family="api")
    registry = HandlerRegistry()
    registry.register("api", handler_cls)

    step = Step.from_dict({"action": "get", "end point": "http://x"})
    handler = registry.create(step, {"api": {"timeout_seconds": 1}})

    assert handler.step["end point"] == "http://x"
    assert handler.settings == {"api": {"timeout_seconds": 1}}
    assert handler_cls.built == 1


def test_factory_must_be_callable():
    _require_imports()
    with pytest.raises(TypeError):
        HandlerRegistry().register("api", object())
