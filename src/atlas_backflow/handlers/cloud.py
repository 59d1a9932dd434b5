# src/atlas_backflow/handlers/cloud.py
"""
Handler da família Cloud (AWS via boto3).

Verbos:
    - s3upload      → envia o arquivo local `filename` para `first_bucket_name`/`bucket`
    - s3download    → conteúdo texto do objeto (opcionalmente salvo em `filename`)
    - batch         → submete o job, acompanha o status, retorna {"jobId", "status"}
    - secrets       → JSON do segredo `secret_name`
    - invoke_lambda → payload de resposta da função
    - send_sqs      → publica `messages` na fila `queue_name`
    - receive_sqs   → corpos das mensagens recebidas (long polling)
    - athena        → linhas como dicts, `False` em FAILED/CANCELLED, ou o id
                      da execução quando `wait` é falso

Credenciais (CredentialResolver):
    - Em CI (`GITLAB_CI == "true"`): assume a cross-role do grupo e, com
      `access_role`, encadeia a segunda role usando as credenciais temporárias
    - Fora de CI: profile nomeado dos settings (`default`)
    - Qualquer falha vira `CredentialResolutionError`

Recursos:
    - Clientes criados por chamada e fechados ao final
    - Nenhum I/O na construção do handler
"""

from __future__ import annotations

import json
import logging
import os
import time
from contextlib import closing
from pathlib import Path
from typing import Any, Callable, Dict, List, Mapping, Optional

import boto3
from botocore.config import Config
from botocore.exceptions import BotoCoreError, ClientError

from atlas_backflow.core.config.settings import section
from atlas_backflow.core.exceptions import ConfigurationError, CredentialResolutionError, DispatchError
from atlas_backflow.core.pipeline.handler import invoke_verb
from atlas_backflow.core.pipeline.types import OperationFamily, _as_bool


logger = logging.getLogger(__name__)

ClientFactory = Callable[[str], Any]
StsFactory = Callable[[Optional[Mapping[str, str]]], Any]

_CANCELLABLE = frozenset({"SUBMITTED", "PENDING", "RUNNABLE"})
_TERMINABLE = frozenset({"STARTING", "STARTED", "RUNNING"})
_FINAL = frozenset({"SUCCEEDED", "FAILED"})


class CredentialResolver:
    """Resolve a sessão boto3 conforme o ambiente (CI com assume-role ou profile local)."""

    def __init__(
        self,
        settings: Optional[Mapping[str, Any]] = None,
        *,
        environ: Optional[Mapping[str, str]] = None,
        sts_factory: Optional[StsFactory] = None,
    ):
        self.cfg = section(settings, "cloud")
        self.environ = os.environ if environ is None else environ
        self._sts_factory = sts_factory or self._default_sts

    def _default_sts(self, credentials: Optional[Mapping[str, str]] = None) -> Any:
        return boto3.client("sts", region_name=self.cfg["region"], **dict(credentials or {}))

    def in_ci(self) -> bool:
        return str(self.environ.get(self.cfg["ci_env_var"], "")).strip().lower() == "true"

    def _assume(self, sts: Any, role_arn: str, session_name: str) -> Dict[str, str]:
        logger.info("Assuming role %s", role_arn)
        try:
            response = sts.assume_role(RoleArn=role_arn, RoleSessionName=session_name)
        except (BotoCoreError, ClientError) as exc:
            raise CredentialResolutionError(
                message=f"Failed to assume role {role_arn}: {exc}",
                details={"role_arn": role_arn},
            ) from exc

        creds = response.get("Credentials") or {}
        if not all(creds.get(k) for k in ("AccessKeyId", "SecretAccessKey", "SessionToken")):
            raise CredentialResolutionError(
                message=f"Role {role_arn} returned incomplete credentials",
                details={"role_arn": role_arn},
            )
        return {
            "aws_access_key_id": creds["AccessKeyId"],
            "aws_secret_access_key": creds["SecretAccessKey"],
            "aws_session_token": creds["SessionToken"],
        }

    def assumed_credentials(self, access_role: Optional[str] = None) -> Optional[Dict[str, str]]:
        """Credenciais temporárias em CI; `None` quando o profile local deve ser usado."""
        if not self.in_ci():
            return None

        account = self.environ.get(self.cfg["account_env_var"])
        group = self.environ.get(self.cfg["group_env_var"])
        if not account or not group:
            raise CredentialResolutionError(
                message="Missing AWS account or group environment for role assumption",
                details={
                    "account_env_var": self.cfg["account_env_var"],
                    "group_env_var": self.cfg["group_env_var"],
                },
            )

        cross_role = f"arn:aws:iam::{account}:role/gl-{group}-cross-role"
        creds = self._assume(self._sts_factory(None), cross_role, "CrossRoleSession")

        if access_role:
            access_arn = f"arn:aws:iam::{account}:role/{access_role}"
            creds = self._assume(self._sts_factory(creds), access_arn, "AccessRoleSession")

        return creds

    def session(self, access_role: Optional[str] = None) -> boto3.session.Session:
        region = self.cfg["region"]
        creds = self.assumed_credentials(access_role)
        if creds is not None:
            return boto3.session.Session(region_name=region, **creds)

        try:
            return boto3.session.Session(profile_name=self.cfg["profile"], region_name=region)
        except BotoCoreError as exc:
            raise CredentialResolutionError(
                message=f"AWS profile {self.cfg['profile']!r} unavailable: {exc}",
                details={"profile": self.cfg["profile"]},
            ) from exc


def client_config(settings: Optional[Mapping[str, Any]] = None) -> Config:
    cfg = section(settings, "cloud")
    return Config(
        region_name=cfg["region"],
        connect_timeout=cfg["connect_timeout_seconds"],
        retries={"max_attempts": int(cfg["max_attempts"]), "mode": "standard"},
    )


def default_client_factory(
    settings: Optional[Mapping[str, Any]] = None,
    access_role: Optional[str] = None,
    resolver: Optional[CredentialResolver] = None,
) -> ClientFactory:
    resolver = resolver or CredentialResolver(settings)
    config = client_config(settings)

    def factory(service: str) -> Any:
        return resolver.session(access_role).client(service, config=config)

    return factory


def fetch_secret(
    secret_name: Optional[str],
    access_role: Optional[str] = None,
    *,
    settings: Optional[Mapping[str, Any]] = None,
    client_factory: Optional[ClientFactory] = None,
) -> Dict[str, Any]:
    """JSON de um segredo do Secrets Manager (`test/urf-db-credentials` por padrão)."""
    name = secret_name or section(settings, "database")["default_secret_name"]
    factory = client_factory or default_client_factory(settings, access_role)

    with closing(factory("secretsmanager")) as client:
        response = client.get_secret_value(SecretId=name)
    return json.loads(response.get("SecretString") or "{}")


class CloudHandler:
    """Verbos AWS; um cliente boto3 por chamada."""

    family = OperationFamily.CLOUD.value
    verbs = frozenset(
        {"s3upload", "s3download", "batch", "secrets", "invoke_lambda", "send_sqs", "receive_sqs", "athena"}
    )

    def __init__(
        self,
        step: Mapping[str, Any],
        settings: Optional[Mapping[str, Any]] = None,
        *,
        client_factory: Optional[ClientFactory] = None,
        sleep: Callable[[float], None] = time.sleep,
        clock: Callable[[], float] = time.monotonic,
    ):
        self.step = dict(step)
        self.settings = settings
        self.cfg = section(settings, "cloud")
        self.access_role: Optional[str] = step.get("access_role") or None
        self._client_factory = client_factory or default_client_factory(settings, self.access_role)
        self._sleep = sleep
        self._clock = clock

    def invoke(self, verb: str) -> Any:
        return invoke_verb(self, verb)

    def _client(self, service: str) -> closing:
        return closing(self._client_factory(service))

    def _required(self, *keys: str) -> Any:
        for key in keys:
            value = self.step.get(key)
            if value:
                return value
        raise ConfigurationError(
            message=f"Missing `{keys[0]}` for cloud operation",
            details={"keys": list(keys)},
        )

    # ------------------------------------------------------------------
    # S3
    # ------------------------------------------------------------------

    def s3upload(self) -> bool:
        bucket = self._required("first_bucket_name", "bucket")
        filename = self._required("filename")
        key = f"{self.step.get('key') or ''}{filename}"

        with self._client("s3") as client, open(filename, "rb") as fh:
            client.put_object(Bucket=bucket, Key=key, Body=fh)
        logger.info("Uploaded %s to s3://%s/%s", filename, bucket, key)
        return True

    def s3download(self) -> str:
        bucket = self._required("bucket")
        key = self._required("key")

        with self._client("s3") as client:
            response = client.get_object(Bucket=bucket, Key=key)
            content = response["Body"].read().decode("utf-8")
        logger.info("Downloaded s3://%s/%s", bucket, key)

        target = self.step.get("filename")
        if target:
            Path(target).write_text(content, encoding="utf-8")
        return content

    # ------------------------------------------------------------------
    # Batch
    # ------------------------------------------------------------------

    def batch(self) -> Dict[str, Any]:
        params: Dict[str, Any] = {
            "jobName": self._required("job_name"),
            "jobQueue": self._required("job_queue"),
            "jobDefinition": self._required("job_definition"),
        }
        if self.step.get("command"):
            params["containerOverrides"] = {"command": list(self.step["command"])}

        expected = self.step.get("status") or "SUCCEEDED"
        wait_seconds = float(self.step.get("waitTime") or self.cfg["batch_wait_seconds"])
        poll = float(self.cfg["batch_poll_seconds"])

        with self._client("batch") as client:
            job_id = client.submit_job(**params)["jobId"]
            logger.info("Batch job submitted: %s with ID: %s", params["jobName"], job_id)

            deadline = self._clock() + wait_seconds
            while True:
                jobs = client.describe_jobs(jobs=[job_id]).get("jobs") or []
                status = jobs[0].get("status") if jobs else None
                logger.info("Job [%s - %s] %s", params["jobName"], job_id, status)

                if status in _FINAL:
                    break
                if self._clock() >= deadline:
                    if status in _CANCELLABLE:
                        client.cancel_job(jobId=job_id, reason="Cancelling job due to timeout")
                    elif status in _TERMINABLE:
                        client.terminate_job(jobId=job_id, reason="Terminating job due to timeout")
                    break
                self._sleep(poll)

        if status != expected:
            raise DispatchError(
                message=f"Job {job_id} status is not as expected. Current status is {status}",
                details={"job_id": job_id, "expected_status": expected, "actual_status": status},
            )
        return {"jobId": job_id, "status": status}

    # ------------------------------------------------------------------
    # Secrets / Lambda
    # ------------------------------------------------------------------

    def secrets(self) -> Dict[str, Any]:
        return fetch_secret(
            self.step.get("secret_name"),
            self.access_role,
            settings=self.settings,
            client_factory=self._client_factory,
        )

    def invoke_lambda(self) -> Any:
        function_name = self._required("function_name")
        with self._client("lambda") as client:
            response = client.invoke(
                FunctionName=function_name,
                InvocationType=self.step.get("invocation_type") or "RequestResponse",
                Payload=json.dumps(self.step.get("payload") or {}),
            )

            status = int(response.get("StatusCode") or 0)
            raw = response.get("Payload")
            body = raw.read() if hasattr(raw, "read") else raw

        if not 200 <= status < 300:
            raise DispatchError(
                message=f"Lambda {function_name} was not triggered successfully",
                details={"function_name": function_name, "status_code": status},
            )

        decoded = json.loads(body) if body else None
        if response.get("FunctionError"):
            reason = decoded.get("errorMessage") if isinstance(decoded, Mapping) else decoded
            raise DispatchError(
                message=f"Lambda execution failed: {reason}",
                details={"function_name": function_name, "function_error": response["FunctionError"]},
            )
        return decoded

    # ------------------------------------------------------------------
    # SQS
    # ------------------------------------------------------------------

    def _queue_url(self, client: Any) -> str:
        name = self._required("queue_name")
        url = client.get_queue_url(QueueName=name).get("QueueUrl")
        if not url:
            raise DispatchError(message=f"Failed to get queue URL for {name}", details={"queue_name": name})
        return url

    def send_sqs(self) -> Dict[str, Any]:
        messages = list(self.step.get("messages") or [])
        with self._client("sqs") as client:
            url = self._queue_url(client)
            for message in messages:
                client.send_message(QueueUrl=url, MessageBody=str(message))
        logger.info("Sent %d messages to queue %s", len(messages), self.step.get("queue_name"))
        return {"queue_name": self.step.get("queue_name"), "sent": len(messages)}

    def receive_sqs(self) -> List[str]:
        with self._client("sqs") as client:
            url = self._queue_url(client)
            response = client.receive_message(
                QueueUrl=url,
                MaxNumberOfMessages=int(self.step.get("max_message_count") or 10),
                WaitTimeSeconds=int(self.cfg["sqs_wait_seconds"]),
            )
        bodies = [message.get("Body", "") for message in response.get("Messages") or []]
        logger.info("Received %d messages from queue %s", len(bodies), self.step.get("queue_name"))
        return bodies

    # ------------------------------------------------------------------
    # Athena
    # ------------------------------------------------------------------

    def athena(self) -> Any:
        with self._client("athena") as client:
            execution_id = client.start_query_execution(
                QueryString=self._required("query"),
                QueryExecutionContext={"Database": self.step.get("database") or "default"},
                ResultConfiguration={"OutputLocation": f"s3://{self.step.get('bucket') or ''}"},
            )["QueryExecutionId"]

            if not _as_bool(self.step.get("wait")):
                return execution_id

            for _ in range(int(self.cfg["athena_max_polls"])):
                details = client.get_query_execution(QueryExecutionId=execution_id)
                state = details.get("QueryExecution", {}).get("Status", {}).get("State")

                if state in ("FAILED", "CANCELLED"):
                    logger.info("Query %s status: %s", execution_id, state)
                    return False
                if state == "SUCCEEDED":
                    results = client.get_query_results(QueryExecutionId=execution_id)
                    return _athena_rows(results)

                self._sleep(float(self.cfg["athena_poll_seconds"]))

        return False


def _athena_rows(results: Mapping[str, Any]) -> List[Dict[str, Any]]:
    rows = results.get("ResultSet", {}).get("Rows") or []
    if len(rows) < 2:
        return []
    header = [col.get("VarCharValue") for col in rows[0].get("Data") or []]
    out = []
    for row in rows[1:]:
        values = [col.get("VarCharValue") for col in row.get("Data") or []]
        out.append({key: values[i] if i < len(values) else None for i, key in enumerate(header)})
    return out
