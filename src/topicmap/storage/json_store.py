"""JSON file persistent store."""

import logging
import os
import tempfile
from collections.abc import Iterable
from pathlib import Path

from topicmap.errors import PersistedStateInvalid
from topicmap.models import GraphSnapshot, TopicEdge, TopicNode
from topicmap.storage.base import dump_snapshot, parse_snapshot

logger = logging.getLogger(__name__)


class JsonFileStore:
    """Saves the forest as UTF-8 JSON text at a fixed path."""

    def __init__(self, path: Path | str) -> None:
        self.path = Path(path)

    def load(self) -> GraphSnapshot | None:
        """Load the saved forest, or None when nothing was saved yet."""
        if not self.path.exists():
            return None
        try:
            text = self.path.read_text(encoding="utf-8")
        except (UnicodeDecodeError, OSError) as e:
            raise PersistedStateInvalid(
                f"Cannot read saved state: {e}", {"path": str(self.path)}
            ) from e
        snapshot = parse_snapshot(text)
        logger.info(
            f"Loaded {len(snapshot.nodes)} nodes and {len(snapshot.edges)} edges from {self.path}"
        )
        return snapshot

    def save(self, nodes: Iterable[TopicNode], edges: Iterable[TopicEdge]) -> None:
        """Write to a temp file in the same directory, then replace the target."""
        text = dump_snapshot(nodes, edges)
        self.path.parent.mkdir(parents=True, exist_ok=True)
        fd, tmp_name = tempfile.mkstemp(
            dir=self.path.parent, prefix=f".{self.path.name}.", suffix=".tmp"
        )
        try:
            with os.fdopen(fd, "w", encoding="utf-8") as f:
                f.write(text)
            os.replace(tmp_name, self.path)
        except BaseException:
            Path(tmp_name).unlink(missing_ok=True)
            raise

    def clear(self) -> None:
        """Remove the saved forest."""
        self.path.unlink(missing_ok=True)
        logger.info(f"Cleared saved state at {self.path}")
