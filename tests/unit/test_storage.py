"""Unit tests for persistent stores."""

import json
from pathlib import Path

import pytest

from conftest import make_node
from topicmap.config import Settings
from topicmap.errors import PersistedStateInvalid
from topicmap.graph import GraphStore
from topicmap.storage import JsonFileStore, MemoryStore, create_store, dump_snapshot, parse_snapshot


class TestSnapshotCodec:
    """Tests for the shared {nodes, edges} text format."""

    def test_round_trip(self, chain_forest) -> None:
        nodes, edges = chain_forest
        snapshot = parse_snapshot(dump_snapshot(nodes, edges))
        assert snapshot.nodes == tuple(nodes)
        assert snapshot.edges == tuple(edges)

    def test_round_trip_reproduces_store(self, chain_forest) -> None:
        store = GraphStore(*chain_forest)
        snapshot = parse_snapshot(dump_snapshot(store.nodes, store.edges))
        restored = GraphStore(snapshot.nodes, snapshot.edges)
        assert restored.node_ids() == store.node_ids()
        assert restored.edge_ids() == store.edge_ids()

    def test_unicode_kept(self) -> None:
        text = dump_snapshot([make_node("n", label="Москва")], [])
        assert "Москва" in text

    @pytest.mark.parametrize("text", [
        "not json",
        "[]",
        '{"nodes": []}',
        '{"nodes": {}, "edges": []}',
        '{"nodes": [{"label": "no id"}], "edges": []}',
        '{"nodes": [], "edges": [{"id": "e"}]}',
        '{"nodes": ["text"], "edges": []}',
    ])
    def test_invalid_shapes(self, text: str) -> None:
        with pytest.raises(PersistedStateInvalid):
            parse_snapshot(text)


class TestMemoryStore:
    """Tests for MemoryStore."""

    def test_empty(self) -> None:
        assert MemoryStore().load() is None

    def test_save_load_clear(self, chain_forest) -> None:
        store = MemoryStore()
        store.save(*chain_forest)
        assert store.save_count == 1
        assert len(store.load().nodes) == 5
        store.clear()
        assert store.load() is None

    def test_invalid_text(self) -> None:
        with pytest.raises(PersistedStateInvalid):
            MemoryStore(text='{"oops": 1}').load()


class TestJsonFileStore:
    """Tests for JsonFileStore."""

    def test_missing_file(self, tmp_path: Path) -> None:
        assert JsonFileStore(tmp_path / "map.json").load() is None

    def test_save_load(self, tmp_path: Path, chain_forest) -> None:
        path = tmp_path / "nested" / "map.json"
        store = JsonFileStore(path)
        store.save(*chain_forest)

        data = json.loads(path.read_text(encoding="utf-8"))
        assert set(data) == {"nodes", "edges"}
        assert len(store.load().edges) == 4

    def test_no_temp_files_left(self, tmp_path: Path, chain_forest) -> None:
        store = JsonFileStore(tmp_path / "map.json")
        store.save(*chain_forest)
        store.save(*chain_forest)
        assert [p.name for p in tmp_path.iterdir()] == ["map.json"]

    def test_clear(self, tmp_path: Path, chain_forest) -> None:
        store = JsonFileStore(tmp_path / "map.json")
        store.save(*chain_forest)
        store.clear()
        assert not (tmp_path / "map.json").exists()
        store.clear()

    def test_corrupt_file(self, tmp_path: Path) -> None:
        path = tmp_path / "map.json"
        path.write_text("{broken", encoding="utf-8")
        with pytest.raises(PersistedStateInvalid):
            JsonFileStore(path).load()

    def test_undecodable_file(self, tmp_path: Path) -> None:
        path = tmp_path / "map.json"
        path.write_bytes(b'{"nodes": [], "edges": [\xff]}')
        with pytest.raises(PersistedStateInvalid) as exc:
            JsonFileStore(path).load()
        assert exc.value.details["path"] == str(path)

    def test_unreadable_path(self, tmp_path: Path) -> None:
        path = tmp_path / "map.json"
        path.mkdir()
        with pytest.raises(PersistedStateInvalid):
            JsonFileStore(path).load()


class TestCreateStore:
    """Tests for backend selection."""

    def test_memory(self, test_settings: Settings) -> None:
        assert isinstance(create_store(test_settings), MemoryStore)

    def test_json(self, tmp_path: Path) -> None:
        store = create_store(Settings(store_backend="json", store_path=str(tmp_path / "m.json")))
        assert isinstance(store, JsonFileStore)
        assert store.path == tmp_path / "m.json"
