"""Output sinks for domain events.

``KafkaSink`` lives in ``estate_ledger.sinks.kafka`` and is imported only
when a Kafka sink is configured.
"""

from estate_ledger.sinks.console import ConsoleSink
from estate_ledger.sinks.json_file import JsonFileSink

__all__ = ["ConsoleSink", "JsonFileSink"]
