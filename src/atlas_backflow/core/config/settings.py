# src/atlas_backflow/core/config/settings.py
"""
Settings do interpretador Atlas BackFlow.

Os settings controlam parâmetros *ambientais* da execução (timeouts,
região cloud, brokers de mensageria) e nunca fazem parte do workflow.

Resolução:
    DEFAULT_SETTINGS  ← arquivo local opcional (YAML/JSON) ← overrides em memória

Todas as camadas são combinadas via `deep_merge`.
"""

from copy import deepcopy
from pathlib import Path
from typing import Any, Dict, Mapping, Optional

from .loader import load_file
from .merge import deep_merge


DEFAULT_SETTINGS: Dict[str, Any] = {
    "engine": {
        "default_delay_seconds": 0,
    },
    "api": {
        "timeout_seconds": 60,
        "default_headers": {"content-type": "application/json"},
    },
    "database": {
        "driver": "mysql+pymysql",
        "read_timeout_seconds": 60,
        "write_timeout_seconds": 30,
        "connect_timeout_seconds": 60,
        "default_secret_name": "test/urf-db-credentials",
    },
    "cloud": {
        "region": "us-west-2",
        "profile": "default",
        "ci_env_var": "GITLAB_CI",
        "account_env_var": "AWS_ACCOUNT_NONPROD",
        "group_env_var": "GITLAB_GROUP",
        "max_attempts": 3,
        "connect_timeout_seconds": 30,
        "batch_poll_seconds": 10,
        "batch_wait_seconds": 90,
        "athena_max_polls": 1800,
        "athena_poll_seconds": 1,
        "sqs_wait_seconds": 20,
    },
    "messaging": {
        "brokers": [],
        "client_id": "automation-consumer",
        "group_id": "automation-consumer-group",
        "read_timeout_seconds": 60,
        "security_protocol": "SSL",
    },
}


def load_settings(
    local_path: Optional[str] = None,
    overrides: Optional[Mapping[str, Any]] = None,
) -> Dict[str, Any]:
    """
    Resolve os settings efetivos do interpretador.

    Args:
        local_path: Arquivo YAML/JSON opcional; ignorado quando ausente do disco.
        overrides: Overrides em memória aplicados por último.

    Returns:
        Dict[str, Any]: Settings resolvidos (novo dicionário).
    """
    effective = deepcopy(DEFAULT_SETTINGS)

    if local_path is not None:
        if Path(local_path).exists():
            effective = deep_merge(effective, load_file(local_path))

    if overrides:
        effective = deep_merge(effective, dict(overrides))

    return effective


def section(settings: Optional[Mapping[str, Any]], name: str) -> Dict[str, Any]:
    """Seção `name` dos settings, caindo para os defaults quando ausente."""
    base = dict(DEFAULT_SETTINGS.get(name, {}))
    if settings:
        base.update(settings.get(name, {}) or {})
    return base
