from __future__ import annotations

import argparse
import logging
import os
import sys
from pathlib import Path

import requests
from dotenv import load_dotenv

from radar.config import DEFAULT_CANDIDATES_PATH, DEFAULT_GRAPH_PATH
from radar.ingest import (
    build_session,
    candidates_payload,
    collect_candidates,
    default_feed_sources,
    enrich_citations,
)
from radar.io import load_graph, write_json_atomic

logger = logging.getLogger("radar")


def run_ingest(args: argparse.Namespace) -> dict[str, Path | None]:
    if args.env_file:
        load_dotenv(args.env_file)
    elif Path(".env").exists():
        load_dotenv(".env")

    graph_path = args.graph or os.getenv("RADAR_GRAPH_PATH", "").strip() or DEFAULT_GRAPH_PATH
    candidates_path = args.candidates or os.getenv("RADAR_CANDIDATES_PATH", "").strip() or DEFAULT_CANDIDATES_PATH
    api_key = os.getenv("SEMANTIC_SCHOLAR_API_KEY", "").strip() or None

    graph = load_graph(graph_path)
    session = build_session()
    outputs: dict[str, Path | None] = {"graph": None, "candidates": None}

    processed, updated = enrich_citations(
        session,
        graph,
        papers_dir=Path(args.papers_dir),
        limit=args.limit,
        dry_run=args.dry_run,
        api_key=api_key,
    )
    if not args.dry_run:
        outputs["graph"] = write_json_atomic(graph_path, graph)

    if not args.skip_feeds:
        candidates = collect_candidates(
            session,
            default_feed_sources(),
            feed_limit=args.feed_limit,
            dry_run=args.dry_run,
        )
        logger.info("Collected %d relevant candidate(s).", len(candidates))
        if not args.dry_run:
            outputs["candidates"] = write_json_atomic(candidates_path, candidates_payload(candidates))

    logger.info("Processed %d items, updated %d.", processed, updated)
    return outputs


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(description="Enrich graph citations and collect relevant feed candidates.")
    parser.add_argument("--graph", default=None, help="Path to the research graph JSON.")
    parser.add_argument("--candidates", default=None, help="Where to write ingest candidates JSON.")
    parser.add_argument("--papers-dir", default="public/papers", help="Directory for downloaded open-access PDFs.")
    parser.add_argument("--limit", type=int, default=None, help="Max graph nodes to look up citations for.")
    parser.add_argument("--feed-limit", type=int, default=50, help="Max items kept per feed.")
    parser.add_argument("--skip-feeds", action="store_true", help="Only enrich citations; do not fetch feeds.")
    parser.add_argument("--dry-run", action="store_true", help="Fetch but do not write files or download PDFs.")
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
        outputs = run_ingest(args)
    except (FileNotFoundError, ValueError, requests.RequestException) as exc:
        logger.error("Ingest failed: %s", exc)
        sys.exit(1)

    print("Ingest completed successfully.")
    for name, path in outputs.items():
        print(f"- {name}: {path if path is not None else 'not written'}")


if __name__ == "__main__":
    main()
