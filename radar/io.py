from __future__ import annotations

import json
import logging
import os
import stat
from pathlib import Path
import tempfile
from typing import Any

logger = logging.getLogger(__name__)

DEFAULT_FILE_MODE = 0o644


def _read_json(path: Path) -> Any:
    try:
        return json.loads(path.read_text(encoding="utf-8"))
    except json.JSONDecodeError as exc:
        raise ValueError(f"Could not parse JSON in {path}: {exc}") from exc


def load_graph(input_path: str) -> dict[str, Any]:
    """Load the curated document store; it must hold a ``nodes`` list of objects with id and title."""
    graph_path = Path(input_path)
    if not graph_path.exists():
        raise FileNotFoundError(f"Graph file not found: {input_path}")

    graph = _read_json(graph_path)
    if not isinstance(graph, dict) or not isinstance(graph.get("nodes"), list):
        raise ValueError(f"{input_path} must contain an object with a 'nodes' list")

    bad_rows: list[int] = []
    for i, node in enumerate(graph["nodes"]):
        if not isinstance(node, dict) or node.get("id") in (None, "") or not isinstance(node.get("title"), str):
            bad_rows.append(i)
    if bad_rows:
        raise ValueError(
            f"{len(bad_rows)} node(s) in {input_path} lack an id or title. Sample indexes: {bad_rows[:10]}"
        )
    return graph


def load_candidates(input_path: str) -> list[dict[str, Any]]:
    candidates_path = Path(input_path)
    if not candidates_path.exists():
        logger.info("No candidate file at %s; only re-clustering existing nodes.", input_path)
        return []

    payload = _read_json(candidates_path)
    items = payload.get("items", []) if isinstance(payload, dict) else None
    if not isinstance(items, list):
        raise ValueError(f"{input_path} must contain an object with an 'items' list")

    valid = [item for item in items if isinstance(item, dict) and item.get("id") and item.get("title")]
    if len(valid) < len(items):
        logger.warning("Skipped %d candidate(s) without id or title.", len(items) - len(valid))
    return valid


def write_json_atomic(output_path: str, payload: Any) -> Path:
    """Write JSON next to the target and rename over it, so readers never see a partial file."""
    target = Path(output_path)
    target.parent.mkdir(parents=True, exist_ok=True)
    mode = stat.S_IMODE(target.stat().st_mode) if target.exists() else DEFAULT_FILE_MODE
    fd, tmp_name = tempfile.mkstemp(prefix=f".{target.name}.", suffix=".tmp", dir=target.parent)
    try:
        with os.fdopen(fd, "w", encoding="utf-8") as handle:
            json.dump(payload, handle, indent=2, ensure_ascii=False)
            handle.write("\n")
        # mkstemp creates files as 0600
        os.chmod(tmp_name, mode)
        os.replace(tmp_name, target)
    except BaseException:
        if os.path.exists(tmp_name):
            os.unlink(tmp_name)
        raise
    return target
