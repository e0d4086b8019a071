import json
import os
import stat

import pytest

from radar.io import load_candidates, load_graph, write_json_atomic


def test_missing_graph_is_fatal(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_graph(str(tmp_path / "missing.json"))


def test_unparsable_graph_is_fatal(tmp_path):
    path = tmp_path / "graph.json"
    path.write_text("{not json", encoding="utf-8")
    with pytest.raises(ValueError):
        load_graph(str(path))


def test_graph_without_nodes_is_fatal(tmp_path):
    path = tmp_path / "graph.json"
    path.write_text(json.dumps({"clusters": []}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_graph(str(path))


def test_graph_node_without_id_is_fatal(tmp_path):
    path = tmp_path / "graph.json"
    path.write_text(json.dumps({"nodes": [{"title": "No id"}]}), encoding="utf-8")
    with pytest.raises(ValueError, match="lack an id or title"):
        load_graph(str(path))


def test_valid_graph_loads(tmp_path):
    path = tmp_path / "graph.json"
    path.write_text(json.dumps({"nodes": [{"id": "a", "title": "A", "extra": 1}]}), encoding="utf-8")
    assert load_graph(str(path))["nodes"][0]["extra"] == 1


def test_missing_candidates_are_empty(tmp_path, caplog):
    with caplog.at_level("INFO"):
        assert load_candidates(str(tmp_path / "none.json")) == []
    assert "only re-clustering existing nodes" in caplog.text


def test_candidates_skip_items_without_id(tmp_path):
    path = tmp_path / "candidates.json"
    path.write_text(json.dumps({"items": [{"id": "x", "title": "X"}, {"title": "no id"}]}), encoding="utf-8")
    assert [item["id"] for item in load_candidates(str(path))] == ["x"]


def test_malformed_candidates_are_fatal(tmp_path):
    path = tmp_path / "candidates.json"
    path.write_text(json.dumps({"items": "oops"}), encoding="utf-8")
    with pytest.raises(ValueError):
        load_candidates(str(path))


def test_atomic_write_replaces_file(tmp_path):
    path = tmp_path / "out" / "graph.json"
    write_json_atomic(str(path), {"nodes": [1]})
    write_json_atomic(str(path), {"nodes": [2]})
    assert json.loads(path.read_text(encoding="utf-8")) == {"nodes": [2]}
    assert [p.name for p in path.parent.iterdir()] == ["graph.json"]


def test_atomic_write_keeps_existing_mode(tmp_path):
    path = tmp_path / "graph.json"
    for mode in (0o644, 0o664):
        path.write_text("{}", encoding="utf-8")
        os.chmod(path, mode)
        write_json_atomic(str(path), {"nodes": []})
        assert stat.S_IMODE(path.stat().st_mode) == mode


def test_atomic_write_new_file_is_world_readable(tmp_path):
    path = tmp_path / "candidates.json"
    write_json_atomic(str(path), {"items": []})
    assert stat.S_IMODE(path.stat().st_mode) == 0o644
