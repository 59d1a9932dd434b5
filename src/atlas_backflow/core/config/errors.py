# src/atlas_backflow/core/config/errors.py
"""
Exceções da camada de configuração do Atlas BackFlow.

Todas herdam de `ConfigurationError`, portanto são tratadas pelo engine
como falhas fatais: nenhum retry de step corrige um arquivo ausente
ou uma estrutura raiz inválida.

Invariantes:
    - Toda exceção de configuração herda de `ConfigError`
    - Nenhuma exceção daqui representa falha de backend
"""

from __future__ import annotations

from dataclasses import dataclass

from atlas_backflow.core.exceptions import ConfigurationError


@dataclass(frozen=True)
class ConfigError(ConfigurationError):
    """
    Exceção base para erros de carregamento e resolução de configuração.

    Permite captura genérica de falhas estruturais de workflow/settings,
    distinguindo-as de falhas de dispatch e de validação.
    """


@dataclass(frozen=True)
class WorkflowNotFoundError(ConfigError):
    """
    Arquivo de workflow ou de settings não encontrado no caminho informado.

    Limites explícitos:
        - Não tenta procurar o arquivo em diretórios alternativos
    """


@dataclass(frozen=True)
class UnsupportedConfigFormatError(ConfigError):
    """
    Formato de arquivo não suportado.

    Formatos suportados (v1):
        - YAML (.yaml, .yml)
        - JSON (.json)
    """


@dataclass(frozen=True)
class InvalidConfigRootTypeError(ConfigError):
    """
    Conteúdo raiz do arquivo não é um mapa chave-valor.

    Um workflow é sempre um dicionário com `flow name`, `param_store`
    e `steps`; listas ou escalares no root são rejeitados.
    """


@dataclass(frozen=True)
class ConfigTypeConflictError(ConfigError):
    """
    Conflito de tipos durante o deep-merge de settings.

    Exemplo de conflito:
        - base:     {"api": {"timeout_seconds": 30}}
        - override: {"api": "fast"}
    """
