# tests/core/config/test_loader.py
"""
Testes do loader de workflows do Atlas BackFlow.

Os testes asseguram que:
- workflows YAML e JSON são carregados como dicionários
- arquivos vazios resultam em `{}`
- ausência de arquivo, extensão não suportada e raiz inválida
  produzem exceções explícitas da camada de configuração

Limites explícitos:
    - Não valida execução de workflows
    - Não valida merge de settings
"""

import json

import pytest

from atlas_backflow.core.config.errors import (
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
    WorkflowNotFoundError,
)
from atlas_backflow.core.config.loader import load_file, load_workflow
from atlas_backflow.core.exceptions import ConfigurationError


_WORKFLOW_YAML = """\
flow name: create user
param_store:
  base_url: http://svc.local
steps:
  - step: 1
    step name: create
    action: POST
    end point: <<base_url>>/users
    body:
      name: ana
    value_map:
      user_id: id
"""


def test_load_workflow_yaml(tmp_path):
    path = tmp_path / "flow.yaml"
    path.write_text(_WORKFLOW_YAML, encoding="utf-8")

    workflow = load_workflow(path)

    assert workflow["flow name"] == "create user"
    assert workflow["param_store"] == {"base_url": "http://svc.local"}
    assert workflow["steps"][0]["end point"] == "<<base_url>>/users"
    assert workflow["steps"][0]["value_map"] == {"user_id": "id"}


def test_load_workflow_json(tmp_path):
    path = tmp_path / "flow.json"
    path.write_text(json.dumps({"flow name": "f", "steps": [{"action": "read"}]}), encoding="utf-8")

    assert load_workflow(path) == {"flow name": "f", "steps": [{"action": "read"}]}


def test_empty_file_loads_as_empty_dict(tmp_path):
    path = tmp_path / "empty.yml"
    path.write_text("", encoding="utf-8")

    assert load_file(path) == {}


def test_missing_file_raises(tmp_path):
    with pytest.raises(WorkflowNotFoundError) as exc:
        load_workflow(tmp_path / "nope.yaml")

    assert exc.value.details["path"].endswith("nope.yaml")


def test_unsupported_suffix_raises(tmp_path):
    path = tmp_path / "flow.toml"
    path.write_text("x = 1", encoding="utf-8")

    with pytest.raises(UnsupportedConfigFormatError):
        load_file(path)


def test_non_mapping_root_raises(tmp_path):
    path = tmp_path / "flow.yaml"
    path.write_text("- a\n- b\n", encoding="utf-8")

    with pytest.raises(InvalidConfigRootTypeError):
        load_file(path)


def test_steps_must_be_a_list(tmp_path):
    """
    `steps` declarado como mapa é erro de configuração.

    Invariantes:
        - Erros do loader pertencem à família ConfigurationError (não fazem retry)
    """
    path = tmp_path / "flow.yaml"
    path.write_text("steps:\n  a: 1\n", encoding="utf-8")

    with pytest.raises(ConfigurationError):
        load_workflow(path)
