from __future__ import annotations

import argparse
import json
import logging
import sys
from pathlib import Path

from radar.config import load_config
from radar.io import load_candidates, load_graph, write_json_atomic
from radar.lexicon import default_lexicon
from radar.merge import MergeResult, merge_graph, summarize_clusters

logger = logging.getLogger("radar")


def _log_summary(result: MergeResult) -> None:
    for cid, label, count in summarize_clusters(result):
        logger.info("  %s  %-50s %d node(s)", cid, label, count)


def run_pipeline(args: argparse.Namespace) -> dict[str, Path | None]:
    config = load_config(
        k=args.k,
        dry_run=args.dry_run,
        compose_rings=args.rings,
        graph_path=args.graph,
        candidates_path=args.candidates,
        env_file=args.env_file,
    )

    logger.info("Loading %s and %s...", config.graph_path, config.candidates_path)
    graph = load_graph(config.graph_path)
    candidates = load_candidates(config.candidates_path)

    result = merge_graph(graph, candidates, config, default_lexicon())
    logger.info("Cluster labels (from data):")
    _log_summary(result)

    if config.dry_run:
        logger.info("Dry run: not writing. Cluster sample:\n%s", json.dumps(result.clusters[:3], indent=2))
        if result.nodes:
            logger.info("Node sample (first):\n%s", json.dumps(result.nodes[0], indent=2))
        return {"graph": None}

    output_path = write_json_atomic(config.graph_path, result.to_dict())
    logger.info(
        "Wrote %s with %d clusters and %d nodes.", output_path, len(result.clusters), len(result.nodes)
    )
    return {"graph": output_path}


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        description="Merge ingest candidates into the research graph and recompute clusters, layout and labels."
    )
    parser.add_argument("--k", type=int, default=None, help="Target number of clusters (default 10, capped at 20).")
    parser.add_argument("--graph", default=None, help="Path to the research graph JSON (read and rewritten).")
    parser.add_argument("--candidates", default=None, help="Path to the ingest candidates JSON.")
    parser.add_argument("--dry-run", action="store_true", help="Run the full pipeline but do not write the graph.")
    parser.add_argument("--rings", action="store_true", help="Arrange clusters on inner and outer rings.")
    parser.add_argument("--env-file", default=None, help="Optional path to .env file.")
    parser.add_argument("--verbose", action="store_true", help="Enable debug logging.")
    return parser


def main() -> None:
    parser = build_parser()
    args = parser.parse_args()
    logging.basicConfig(
        level=logging.DEBUG if args.verbose else logging.INFO,
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )

    try:
        outputs = run_pipeline(args)
    except (FileNotFoundError, ValueError) as exc:
        logger.error("Merge failed: %s", exc)
        sys.exit(1)

    print("Merge completed successfully.")
    for name, path in outputs.items():
        print(f"- {name}: {path if path is not None else 'not written (dry run)'}")


if __name__ == "__main__":
    main()
