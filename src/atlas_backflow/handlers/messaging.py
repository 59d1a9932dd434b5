# src/atlas_backflow/handlers/messaging.py
"""
Handler da família Messaging (Kafka via kafka-python).

Verbos:
    - send_event → publica `event` (JSON) em `topic`
    - read_event → consome `topic` até uma mensagem casar com o filtro
      `event` (caminhos pontuados, igualdade exata) ou o prazo expirar

Conexão:
    - brokers: `messaging.brokers` dos settings ou `KAFKA_BROKERS` (vírgulas)
    - SSL: `KAFKA_CLIENT_CERT`, `KAFKA_CLIENT_KEY`, `KAFKA_CLIENT_CERT_PASSPHRASE`
    - SASL PLAIN quando `KAFKA_USERNAME` e `KAFKA_PASSWORD` estão definidos

Invariantes:
    - Filtro vazio casa com a primeira mensagem
    - O consumer é fechado em todos os caminhos de saída
"""

from __future__ import annotations

import json
import logging
import os
import time
from typing import Any, Callable, Dict, List, Mapping, Optional

from kafka import KafkaConsumer, KafkaProducer

from atlas_backflow.core.config.settings import section
from atlas_backflow.core.exceptions import ConfigurationError, OperationTimeoutError
from atlas_backflow.core.pipeline.handler import invoke_verb
from atlas_backflow.core.pipeline.types import OperationFamily


logger = logging.getLogger(__name__)

_MISSING = object()


def deep_match(obj: Any, path: str, value: Any) -> bool:
    current = obj
    for part in str(path).split("."):
        if not isinstance(current, Mapping) or part not in current:
            return False
        current = current[part]
    return current == value


def matches_filter(event: Any, criteria: Optional[Mapping[str, Any]]) -> bool:
    if not criteria:
        return True
    return all(deep_match(event, key, value) for key, value in criteria.items())


def connection_options(
    settings: Optional[Mapping[str, Any]] = None,
    environ: Optional[Mapping[str, str]] = None,
) -> Dict[str, Any]:
    """Opções comuns a producer e consumer (brokers, SSL, SASL)."""
    cfg = section(settings, "messaging")
    env = os.environ if environ is None else environ

    brokers: List[str] = list(cfg.get("brokers") or [])
    if not brokers and env.get("KAFKA_BROKERS"):
        brokers = [b.strip() for b in env["KAFKA_BROKERS"].split(",") if b.strip()]

    options: Dict[str, Any] = {
        "bootstrap_servers": brokers,
        "client_id": cfg["client_id"],
        "security_protocol": cfg["security_protocol"],
    }
    if env.get("KAFKA_CLIENT_CERT"):
        options["ssl_certfile"] = env["KAFKA_CLIENT_CERT"]
    if env.get("KAFKA_CLIENT_KEY"):
        options["ssl_keyfile"] = env["KAFKA_CLIENT_KEY"]
    if env.get("KAFKA_CLIENT_CERT_PASSPHRASE"):
        options["ssl_password"] = env["KAFKA_CLIENT_CERT_PASSPHRASE"]

    if env.get("KAFKA_USERNAME") and env.get("KAFKA_PASSWORD"):
        options["security_protocol"] = "SASL_SSL"
        options["sasl_mechanism"] = "PLAIN"
        options["sasl_plain_username"] = env["KAFKA_USERNAME"]
        options["sasl_plain_password"] = env["KAFKA_PASSWORD"]

    return options


def _decode(raw: Any) -> Any:
    if raw is None:
        return _MISSING
    if isinstance(raw, (bytes, bytearray)):
        raw = raw.decode("utf-8")
    try:
        return json.loads(raw)
    except ValueError:
        return _MISSING


class MessagingHandler:
    """Publica e consome eventos JSON em tópicos Kafka."""

    family = OperationFamily.MESSAGING.value
    verbs = frozenset({"send_event", "read_event"})

    def __init__(
        self,
        step: Mapping[str, Any],
        settings: Optional[Mapping[str, Any]] = None,
        *,
        producer_factory: Optional[Callable[..., Any]] = None,
        consumer_factory: Optional[Callable[..., Any]] = None,
        clock: Callable[[], float] = time.monotonic,
    ):
        cfg = section(settings, "messaging")
        self.topic: Optional[str] = step.get("topic") or None
        self.event = step.get("event")
        self.group_id: str = step.get("group_id") or cfg["group_id"]
        self.read_timeout = float(cfg["read_timeout_seconds"])
        self.settings = settings
        self._producer_factory = producer_factory or KafkaProducer
        self._consumer_factory = consumer_factory or KafkaConsumer
        self._clock = clock

    def invoke(self, verb: str) -> Any:
        return invoke_verb(self, verb)

    def _require_topic(self, verb: str) -> str:
        if not self.topic:
            raise ConfigurationError(message=f"`{verb}` requires `topic`", details={"action": verb})
        return self.topic

    def send_event(self) -> bool:
        topic = self._require_topic("send_event")
        producer = self._producer_factory(**connection_options(self.settings))
        try:
            producer.send(topic, value=json.dumps(self.event).encode("utf-8"))
            producer.flush()
        finally:
            producer.close()
        logger.info("Event sent to topic %s", topic)
        return True

    def read_event(self) -> Any:
        topic = self._require_topic("read_event")
        criteria = self.event if isinstance(self.event, Mapping) else {}

        consumer = self._consumer_factory(
            topic,
            group_id=self.group_id,
            session_timeout_ms=30000,
            heartbeat_interval_ms=5000,
            **connection_options(self.settings),
        )
        try:
            deadline = self._clock() + self.read_timeout
            while self._clock() < deadline:
                batches = consumer.poll(timeout_ms=1000) or {}
                for records in batches.values():
                    for record in records:
                        event = _decode(getattr(record, "value", None))
                        if event is _MISSING:
                            logger.warning("Skipping non-JSON message on topic %s", topic)
                            continue
                        if matches_filter(event, criteria):
                            logger.info("Matched event on topic %s", topic)
                            return event
        finally:
            consumer.close()

        raise OperationTimeoutError(
            message=f"Timeout waiting for message on topic {topic}",
            details={"topic": topic, "timeout_seconds": self.read_timeout, "filter": dict(criteria)},
        )
