# src/atlas_backflow/handlers/__init__.py
"""
Handlers embutidos do Atlas BackFlow.

Cada família de operação tem exatamente um handler:

- **api** → `ApiHandler` (httpx)
- **database** → `DatabaseHandler` (SQLAlchemy + PyMySQL)
- **file** → `FileHandler`
- **cloud** → `CloudHandler` (boto3)
- **messaging** → `MessagingHandler` (kafka-python)

`build_default_registry()` monta o `HandlerRegistry` com todas elas.
"""

from atlas_backflow.core.pipeline.registry import HandlerRegistry
from atlas_backflow.core.pipeline.types import OperationFamily

from .api import ApiHandler
from .cloud import CloudHandler, CredentialResolver, fetch_secret
from .database import DatabaseHandler
from .file import FileHandler
from .messaging import MessagingHandler


def build_default_registry() -> HandlerRegistry:
    registry = HandlerRegistry()
    registry.register(OperationFamily.API.value, ApiHandler)
    registry.register(OperationFamily.DATABASE.value, DatabaseHandler)
    registry.register(OperationFamily.FILE.value, FileHandler)
    registry.register(OperationFamily.CLOUD.value, CloudHandler)
    registry.register(OperationFamily.MESSAGING.value, MessagingHandler)
    return registry


__all__ = [
    "ApiHandler",
    "CloudHandler",
    "CredentialResolver",
    "DatabaseHandler",
    "FileHandler",
    "MessagingHandler",
    "build_default_registry",
    "fetch_secret",
]
