# src/atlas_backflow/handlers/database.py
"""
Handler da família Database (SQLAlchemy + PyMySQL).

Verbos:
    - select   → primeira linha como dict (ou None)
    - count    → {"count": n}
    - insert   → {"rowcount": n}
    - update   → {"rowcount": n}
    - deletedb → {"rowcount": n}

Templates SQL (valores interpolados literalmente, como declarados no step):
    select {columns} from {table}{ where c1=v1 and c2=v2} order by 1 desc limit 1
    select count(*) as count from {table}{ where ...} order by 1 desc limit 1
    insert into {table} (c1,c2) values (v1,v2)
    update {table} set s1=v1 , s2=v2 where c1=v1 and ...
    delete from {table} where c1=v1 and ...

Credenciais:
    - Obtidas do colaborador de segredos (`secret_name`, `access_role`)
    - Com `schema`: chaves `test_{schema}_host|user|password`
    - Sem `schema`: host do step (`host_name`) + `username`/`password`

Recursos:
    - Uma engine e uma conexão por chamada, sempre descartadas
    - Statement limitado por `read_timeout_seconds` (leituras) ou
      `write_timeout_seconds` (escritas)

Limites explícitos:
    - Não faz escaping de valores (o workflow é a fonte da verdade)
    - Não mantém pool entre steps
"""

from __future__ import annotations

import logging
from contextlib import contextmanager
from functools import partial
from typing import Any, Callable, Dict, Iterator, List, Mapping, Optional

from sqlalchemy import create_engine
from sqlalchemy.engine import URL, Connection, Engine

from atlas_backflow.core.config.settings import section
from atlas_backflow.core.engine.timeout import run_with_timeout
from atlas_backflow.core.exceptions import ConfigurationError
from atlas_backflow.core.pipeline.handler import invoke_verb
from atlas_backflow.core.pipeline.types import OperationFamily
from atlas_backflow.handlers.cloud import fetch_secret


logger = logging.getLogger(__name__)

SecretLookup = Callable[[str, Optional[str]], Mapping[str, Any]]
EngineFactory = Callable[[Mapping[str, Any]], Engine]


def _pairs(names: List[Any], values: List[Any], sep: str) -> str:
    return sep.join(f"{name}={value}" for name, value in zip(names, values))


class DatabaseHandler:
    """Executa um statement SQL por invocação de verbo."""

    family = OperationFamily.DATABASE.value
    verbs = frozenset({"select", "count", "insert", "update", "deletedb"})

    def __init__(
        self,
        step: Mapping[str, Any],
        settings: Optional[Mapping[str, Any]] = None,
        *,
        secret_lookup: Optional[SecretLookup] = None,
        engine_factory: Optional[EngineFactory] = None,
    ):
        cfg = section(settings, "database")
        self.cfg = cfg

        table = step.get("table_name")
        self.table: Optional[str] = str(table).lower() if table else None
        self.schema: Optional[str] = step.get("schema") or None
        self.column_names: List[Any] = list(step.get("column_names") or [])
        self.column_values: List[Any] = list(step.get("column_values") or [])
        self.columns: str = step.get("columns") or "*"
        self.host_name: Optional[str] = step.get("host_name") or None
        self.secret_name: str = step.get("secret_name") or cfg["default_secret_name"]
        self.access_role: Optional[str] = step.get("access_role") or None
        self.set_column_names: List[Any] = list(step.get("set_column_names") or [])
        self.set_column_values: List[Any] = list(step.get("set_column_values") or [])

        self._secret_lookup = secret_lookup or partial(fetch_secret, settings=settings)
        self._engine_factory = engine_factory or self._default_engine

    def invoke(self, verb: str) -> Any:
        return invoke_verb(self, verb)

    # ------------------------------------------------------------------
    # SQL
    # ------------------------------------------------------------------

    def _require_table(self, verb: str) -> str:
        if not self.table:
            raise ConfigurationError(
                message=f"`{verb}` requires `table_name`",
                details={"action": verb},
            )
        return self.table

    def _where(self) -> str:
        clause = _pairs(self.column_names, self.column_values, " and ")
        return f" where {clause}" if clause else ""

    def _require_where(self, verb: str) -> str:
        where = self._where()
        if not where:
            raise ConfigurationError(
                message=f"`{verb}` requires `column_names`/`column_values` for the where clause",
                details={"action": verb, "table": self.table},
                hint="Statements sem filtro não são permitidos em update/deletedb.",
            )
        return where

    def build_query(self, verb: str) -> str:
        table = self._require_table(verb)

        if verb == "select":
            return f"select {self.columns} from {table}{self._where()} order by 1 desc limit 1"
        if verb == "count":
            return f"select count(*) as count from {table}{self._where()} order by 1 desc limit 1"
        if verb == "insert":
            names = ",".join(str(n) for n in self.column_names)
            values = ",".join(str(v) for v in self.column_values)
            return f"insert into {table} ({names}) values ({values})"
        if verb == "update":
            assignments = _pairs(self.set_column_names, self.set_column_values, " , ")
            if not assignments:
                raise ConfigurationError(
                    message="`update` requires `set_column_names`/`set_column_values`",
                    details={"action": verb, "table": table},
                )
            return f"update {table} set {assignments}{self._require_where(verb)}"
        if verb == "deletedb":
            return f"delete from {table}{self._require_where(verb)}"

        raise ConfigurationError(message=f"No SQL template for `{verb}`", details={"action": verb})

    # ------------------------------------------------------------------
    # Conexão
    # ------------------------------------------------------------------

    def credentials(self) -> Dict[str, Any]:
        secret = self._secret_lookup(self.secret_name, self.access_role)
        if self.schema:
            prefix = f"test_{self.schema}"
            return {
                "host": secret.get(f"{prefix}_host"),
                "username": secret.get(f"{prefix}_user"),
                "password": secret.get(f"{prefix}_password"),
            }
        return {
            "host": self.host_name,
            "username": secret.get("username"),
            "password": secret.get("password"),
        }

    def _default_engine(self, credentials: Mapping[str, Any]) -> Engine:
        url = URL.create(
            self.cfg["driver"],
            username=credentials.get("username"),
            password=credentials.get("password"),
            host=credentials.get("host"),
        )
        return create_engine(
            url,
            connect_args={
                "connect_timeout": int(self.cfg["connect_timeout_seconds"]),
                "ssl": {"check_hostname": False},
            },
            pool_pre_ping=True,
        )

    @contextmanager
    def _connect(self, credentials: Mapping[str, Any]) -> Iterator[Connection]:
        engine = self._engine_factory(credentials)
        try:
            with engine.begin() as conn:
                yield conn
        finally:
            engine.dispose()

    def _execute(self, verb: str, timeout_key: str) -> Any:
        query = self.build_query(verb)
        logger.info("Executing query: %s", query)
        credentials = self.credentials()

        def call() -> Any:
            with self._connect(credentials) as conn:
                result = conn.execution_options(no_parameters=True).exec_driver_sql(query)
                if result.returns_rows:
                    row = result.mappings().first()
                    return dict(row) if row is not None else None
                return {"rowcount": result.rowcount}

        return run_with_timeout(call, float(self.cfg[timeout_key]), operation=f"database {verb}")

    # ------------------------------------------------------------------
    # Verbos
    # ------------------------------------------------------------------

    def select(self) -> Any:
        return self._execute("select", "read_timeout_seconds")

    def count(self) -> Any:
        return self._execute("count", "read_timeout_seconds")

    def insert(self) -> Any:
        return self._execute("insert", "write_timeout_seconds")

    def update(self) -> Any:
        return self._execute("update", "write_timeout_seconds")

    def deletedb(self) -> Any:
        return self._execute("deletedb", "write_timeout_seconds")
