"""JSON Lines file sink for exporting events."""

import json
import logging
from pathlib import Path
from typing import Any

from estate_ledger.exceptions import SinkError
from estate_ledger.sinks.serialization import to_dict

logger = logging.getLogger(__name__)


class JsonFileSink:
    """Append events to one ``.jsonl`` file per topic."""

    def __init__(self, output_dir: str | Path) -> None:
        """Initialize JSON file sink.

        Parameters
        ----------
        output_dir : str | Path
            Directory to write JSON Lines files.
        """
        self.output_dir = Path(output_dir)
        self.output_dir.mkdir(parents=True, exist_ok=True)
        self._counts: dict[str, int] = {}

    def path_for(self, topic: str) -> Path:
        """File for a topic (dots and dashes become underscores)."""
        filename = topic.replace(".", "_").replace("-", "_") + ".jsonl"
        return self.output_dir / filename

    def write_batch(self, topic: str, records: list[Any]) -> None:
        """Append a batch of events to the topic's file.

        Raises
        ------
        SinkError
            If the file cannot be written.
        """
        file_path = self.path_for(topic)
        try:
            with open(file_path, "a", encoding="utf-8") as f:
                for record in records:
                    f.write(json.dumps(to_dict(record), ensure_ascii=False, default=str) + "\n")
        except OSError as exc:
            raise SinkError(f"Cannot write events to {file_path}: {exc}") from exc

        self._counts[topic] = self._counts.get(topic, 0) + len(records)

    def close(self) -> None:
        """Log summary."""
        for topic, count in self._counts.items():
            logger.info("Wrote %d events for %s to %s", count, topic, self.path_for(topic))
