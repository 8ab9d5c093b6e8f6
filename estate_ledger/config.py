"""Configuration management for estate-ledger."""

from dataclasses import dataclass, field
from pathlib import Path
from typing import Any

from estate_ledger.exceptions import ConfigurationError

STORE_BACKENDS = ("memory", "postgres")
EVENT_SINKS = ("none", "console", "json", "kafka")
LOG_FORMATS = ("standard", "json")


@dataclass
class PostgresConfig:
    """PostgreSQL connection configuration for the record store."""

    host: str = "localhost"
    port: int = 5432
    database: str = "estate"
    user: str = "postgres"
    password: str = "postgres"

    @property
    def connection_string(self) -> str:
        """Get connection string."""
        return f"postgresql://{self.user}:{self.password}@{self.host}:{self.port}/{self.database}"


@dataclass
class KafkaConfig:
    """Kafka producer configuration for domain events."""

    bootstrap_servers: str = "localhost:9092"
    acks: str = "all"
    linger_ms: int = 5
    retries: int = 3

    def to_dict(self) -> dict[str, Any]:
        """Convert to confluent-kafka config dict."""
        return {
            "bootstrap.servers": self.bootstrap_servers,
            "acks": self.acks,
            "linger.ms": self.linger_ms,
            "retries": self.retries,
        }


@dataclass
class EventsConfig:
    """Where lifecycle and ledger events go."""

    sink: str = "none"
    topic_prefix: str = "dev.estate"
    output_dir: Path = field(default_factory=lambda: Path("events"))

    @property
    def lifecycle_topic(self) -> str:
        return f"{self.topic_prefix}.property-lifecycle"

    @property
    def ledger_topic(self) -> str:
        return f"{self.topic_prefix}.balance-ledger"


@dataclass
class EstateLedgerConfig:
    """Main configuration for estate-ledger."""

    store_backend: str = "memory"
    postgres: PostgresConfig = field(default_factory=PostgresConfig)
    kafka: KafkaConfig = field(default_factory=KafkaConfig)
    events: EventsConfig = field(default_factory=EventsConfig)
    log_level: str = "INFO"
    log_format: str = "standard"

    def __post_init__(self) -> None:
        self.validate()

    def validate(self) -> None:
        """Reject unknown backend, sink or log format names.

        Raises
        ------
        ConfigurationError
            If any choice is outside its allowed set.
        """
        if self.store_backend not in STORE_BACKENDS:
            raise ConfigurationError(
                f"Unknown store backend {self.store_backend!r}; expected one of {STORE_BACKENDS}"
            )
        if self.events.sink not in EVENT_SINKS:
            raise ConfigurationError(
                f"Unknown event sink {self.events.sink!r}; expected one of {EVENT_SINKS}"
            )
        if self.log_format not in LOG_FORMATS:
            raise ConfigurationError(
                f"Unknown log format {self.log_format!r}; expected one of {LOG_FORMATS}"
            )

    @classmethod
    def from_env(cls) -> "EstateLedgerConfig":
        """Create config from environment variables."""
        import os

        postgres = PostgresConfig(
            host=os.getenv("POSTGRES_HOST", "localhost"),
            port=int(os.getenv("POSTGRES_PORT", "5432")),
            database=os.getenv("POSTGRES_DB", "estate"),
            user=os.getenv("POSTGRES_USER", "postgres"),
            password=os.getenv("POSTGRES_PASSWORD", "postgres"),
        )

        kafka = KafkaConfig(
            bootstrap_servers=os.getenv("KAFKA_BOOTSTRAP_SERVERS", "localhost:9092"),
            acks=os.getenv("KAFKA_ACKS", "all"),
        )

        events = EventsConfig(
            sink=os.getenv("EVENT_SINK", "none").lower(),
            topic_prefix=os.getenv("EVENT_TOPIC_PREFIX", "dev.estate"),
            output_dir=Path(os.getenv("EVENTS_DIR", "events")),
        )

        return cls(
            store_backend=os.getenv("STORE_BACKEND", "memory").lower(),
            postgres=postgres,
            kafka=kafka,
            events=events,
            log_level=os.getenv("LOG_LEVEL", "INFO"),
            log_format=os.getenv("LOG_FORMAT", "standard").lower(),
        )
