# src/atlas_backflow/core/config/loader.py
"""
Loader canônico de workflows e settings do Atlas BackFlow.

Responsabilidades do módulo:
    - Carregar arquivos YAML ou JSON do disco
    - Validar requisitos estruturais mínimos (tipo raiz = dict)
    - Expor `load_workflow`, ponto de entrada para cenários declarativos

Princípios fundamentais:
    - Nenhuma heurística implícita: extensão define o parser
    - Arquivos vazios equivalem a dicionários vazios
    - Erros estruturais são fatais e tipados

Limites explícitos:
    - Não resolve placeholders
    - Não valida o schema de cada step (responsabilidade de `pipeline.types`)
    - Não executa o workflow
"""

from pathlib import Path
from typing import Any, Dict, Union
import json

import yaml  # PyYAML

from .errors import (
    InvalidConfigRootTypeError,
    UnsupportedConfigFormatError,
    WorkflowNotFoundError,
)


def load_file(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Carrega um arquivo YAML/JSON e valida que o conteúdo raiz é um dicionário.

    Args:
        path: Caminho para o arquivo.

    Returns:
        Dict[str, Any]: Conteúdo carregado.

    Raises:
        WorkflowNotFoundError: Se o arquivo não existir.
        UnsupportedConfigFormatError: Se a extensão não for suportada.
        InvalidConfigRootTypeError: Se o conteúdo raiz não for um dicionário.
    """
    path = Path(path)
    if not path.exists():
        raise WorkflowNotFoundError(
            message=f"Arquivo não encontrado: {path}",
            details={"path": str(path)},
        )

    suffix = path.suffix.lower()

    if suffix in {".yaml", ".yml"}:
        with path.open("r", encoding="utf-8") as f:
            data = yaml.safe_load(f)

    elif suffix == ".json":
        with path.open("r", encoding="utf-8") as f:
            data = json.load(f)

    else:
        raise UnsupportedConfigFormatError(
            message=f"Formato não suportado: {path.suffix}",
            details={"path": str(path), "suffix": path.suffix},
        )

    if data is None:
        data = {}

    if not isinstance(data, dict):
        raise InvalidConfigRootTypeError(
            message=f"Root deve ser dict, recebido: {type(data).__name__}",
            details={"path": str(path)},
        )

    return data


def load_workflow(path: Union[str, Path]) -> Dict[str, Any]:
    """
    Carrega o payload bruto de um workflow (`flow name`, `param_store`, `steps`).

    O retorno é o dicionário exatamente como declarado no arquivo;
    a conversão para `WorkflowDefinition` acontece no executor.
    """
    workflow = load_file(path)

    steps = workflow.get("steps", [])
    if steps is not None and not isinstance(steps, list):
        raise InvalidConfigRootTypeError(
            message=f"`steps` deve ser lista, recebido: {type(steps).__name__}",
            details={"path": str(path)},
        )

    return workflow
