"""Domain event publishing.

Events are emitted after an operation's writes have landed. Publishing is
a notification, not part of the saga: a sink failure is logged and the
operation still reports success.
"""

from __future__ import annotations

import logging
import uuid
from datetime import datetime, timezone
from typing import Any, Protocol

from estate_ledger.config import EventsConfig, KafkaConfig
from estate_ledger.exceptions import SinkError
from estate_ledger.models.base import Event, UnitKey

logger = logging.getLogger(__name__)

SOURCE = "estate-ledger"

PROPERTY_SOLD = "property.sold"
PROPERTY_REOPENED = "property.reopened"
PAYMENT_APPLIED = "payment.applied"
BALANCE_UPDATED = "balance.updated"


class EventSink(Protocol):
    def write_batch(self, topic: str, records: list[Any]) -> None: ...

    def close(self) -> None: ...


class EventPublisher:
    """Wrap events in the standard envelope and hand them to a sink.

    Parameters
    ----------
    sink : EventSink | None
        Destination; ``None`` disables publishing.
    config : EventsConfig | None
        Topic naming.
    """

    def __init__(self, sink: EventSink | None = None, config: EventsConfig | None = None) -> None:
        self.sink = sink
        self.config = config or EventsConfig()
        self.published = 0

    def _topic_for(self, event_type: str) -> str:
        if event_type.startswith("property."):
            return self.config.lifecycle_topic
        return self.config.ledger_topic

    def publish(self, event_type: str, unit: UnitKey, data: dict, **metadata: Any) -> Event | None:
        """Publish one event about ``unit``.

        Returns
        -------
        Event | None
            The event as sent, or None when publishing is disabled or the
            sink failed.
        """
        if self.sink is None:
            return None

        event = Event(
            event_id=str(uuid.uuid4()),
            event_type=event_type,
            event_time=datetime.now(timezone.utc),
            source=SOURCE,
            subject=str(unit),
            data=data,
            metadata=metadata,
        )
        topic = self._topic_for(event_type)
        try:
            self.sink.write_batch(topic, [event])
        except SinkError as exc:
            logger.warning("Could not publish %s for %s: %s", event_type, unit, exc)
            return None

        self.published += 1
        return event

    def close(self) -> None:
        if self.sink is not None:
            self.sink.close()


def build_sink(config: EventsConfig, kafka: KafkaConfig | None = None) -> EventSink | None:
    """Create the sink named by ``config.sink``."""
    if config.sink == "console":
        from estate_ledger.sinks.console import ConsoleSink

        return ConsoleSink(pretty=False)
    if config.sink == "json":
        from estate_ledger.sinks.json_file import JsonFileSink

        return JsonFileSink(config.output_dir)
    if config.sink == "kafka":
        from estate_ledger.sinks.kafka import KafkaSink

        return KafkaSink(kafka or KafkaConfig())
    return None
