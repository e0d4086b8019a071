from __future__ import annotations

from dataclasses import dataclass, field
from datetime import date
import logging
import re
from typing import Any, Iterable

import numpy as np
import pandas as pd

from radar.clustering import clamp_k, kmeans, merge_small_clusters, restrict_to_kept
from radar.config import PipelineConfig
from radar.design import infer_design_metadata
from radar.labeling import (
    ClusterTerms,
    build_cluster_records,
    cluster_id,
    cluster_rationale,
    top_terms_per_cluster,
)
from radar.lexicon import Lexicon, default_lexicon
from radar.projection import compose_rings, pca_2d, scale_to_viewport
from radar.relevance import filter_relevant
from radar.text import tokenize_document
from radar.vectorize import build_vocabulary, tfidf_matrix

logger = logging.getLogger(__name__)

DOC_COLUMNS = ["id", "title", "summary", "source", "origin", "payload"]
_YEAR_RE = re.compile(r"\d{4}")


@dataclass
class PipelineResult:
    labels: np.ndarray
    positions: np.ndarray
    terms: list[ClusterTerms]
    requested_k: int = 0
    merged_k: int = 0
    vocabulary_size: int = 0


@dataclass
class MergeResult:
    clusters: list[dict[str, Any]]
    nodes: list[dict[str, Any]]
    stats: dict[str, int] = field(default_factory=dict)

    def to_dict(self) -> dict[str, Any]:
        return {"clusters": self.clusters, "nodes": self.nodes}


def graph_nodes_to_docs(nodes: Iterable[dict[str, Any]]) -> pd.DataFrame:
    rows = [
        {
            "id": node["id"],
            "title": node.get("title") or "",
            "summary": node.get("summary") or "",
            "source": node.get("source") or "research",
            "origin": "graph",
            "payload": dict(node),
        }
        for node in nodes
    ]
    return pd.DataFrame(rows, columns=DOC_COLUMNS)


def _published_year(value: Any) -> int:
    match = _YEAR_RE.search(str(value)) if value else None
    return int(match.group(0)) if match else date.today().year


def ingest_items_to_docs(items: Iterable[dict[str, Any]], lexicon: Lexicon | None = None) -> pd.DataFrame:
    lexicon = lexicon or default_lexicon()
    rows = []
    for item in items:
        summary = item.get("summary") or ""
        source = item.get("source") or "industry"
        design = infer_design_metadata(item.get("title"), summary, lexicon)
        rows.append(
            {
                "id": item["id"],
                "title": item.get("title") or "",
                "summary": summary,
                "source": source,
                "origin": "ingest",
                "payload": {
                    "id": item["id"],
                    "title": item.get("title") or "",
                    "authors": "Various",
                    "year": _published_year(item.get("publishedAt")),
                    "url": item.get("url") or "",
                    "summary": summary,
                    "source": source,
                    "designLevers": design.design_levers,
                    "designerIntents": design.designer_intents,
                    "designQuestion": design.design_question,
                    "tags": list(item.get("tags") or []),
                },
            }
        )
    return pd.DataFrame(rows, columns=DOC_COLUMNS)


def drop_duplicate_ids(docs: pd.DataFrame) -> pd.DataFrame:
    deduped = docs.drop_duplicates(subset="id", keep="first").reset_index(drop=True)
    dropped = len(docs) - len(deduped)
    if dropped:
        logger.info("Dropped %d duplicate document(s) by id.", dropped)
    return deduped


def cluster_documents(
    docs: pd.DataFrame,
    config: PipelineConfig,
    lexicon: Lexicon | None = None,
    keep: np.ndarray | None = None,
) -> PipelineResult:
    """Tokenize, vectorize, cluster, project and label a document table.

    Every row shapes the vocabulary, IDF, clusters, layout and labels. When
    ``keep`` is given, clusters are merged again over the kept rows only and
    rows whose cluster lost every kept member are labeled -1.
    """
    lexicon = lexicon or default_lexicon()
    n_docs = len(docs)
    if n_docs == 0:
        return PipelineResult(labels=np.zeros(0, dtype=np.int64), positions=np.zeros((0, 2)), terms=[])

    tokenized = [
        tokenize_document(title, summary, lexicon.stop_words)
        for title, summary in zip(docs["title"].tolist(), docs["summary"].tolist())
    ]
    vocabulary = build_vocabulary(tokenized, config.max_vocab)
    logger.info("Vocabulary size: %d", len(vocabulary))
    features = tfidf_matrix(tokenized, vocabulary)

    k = clamp_k(config.k, n_docs)
    logger.info("Running k-means with k=%d...", k)
    clustering = kmeans(features.values, k, seed=config.seed, max_iterations=config.max_iterations)

    logger.info("Running PCA to 2D...")
    positions = scale_to_viewport(pca_2d(features.values), config.viewport)

    labels, merged_k = merge_small_clusters(positions, clustering.labels, config.min_cluster_size)
    if merged_k < k:
        logger.info(
            "Merged small clusters: %d -> %d (min size %d).", k, merged_k, config.min_cluster_size
        )

    if keep is not None:
        keep = np.asarray(keep, dtype=bool)
        labels, merged_k = restrict_to_kept(positions, labels, keep, config.min_cluster_size)
    else:
        keep = np.ones(n_docs, dtype=bool)

    if config.compose_rings:
        positions = positions.copy()
        positions[keep] = compose_rings(positions[keep], labels[keep], merged_k, config.viewport)

    terms = top_terms_per_cluster(features, labels, lexicon)
    return PipelineResult(
        labels=labels,
        positions=positions,
        terms=terms,
        requested_k=k,
        merged_k=merged_k,
        vocabulary_size=len(vocabulary),
    )


def merge_graph(
    graph: dict[str, Any],
    candidates: list[dict[str, Any]],
    config: PipelineConfig,
    lexicon: Lexicon | None = None,
) -> MergeResult:
    lexicon = lexicon or default_lexicon()

    graph_docs = graph_nodes_to_docs(graph.get("nodes", []))
    raw_ingest = ingest_items_to_docs(candidates, lexicon)
    relevant_ingest = filter_relevant(raw_ingest, lexicon.relevance_phrases)
    if len(raw_ingest) > 0 and len(relevant_ingest) < len(raw_ingest):
        logger.info(
            "Filtered ingest to relevant items: %d of %d kept.", len(relevant_ingest), len(raw_ingest)
        )

    frames = [frame for frame in (graph_docs, relevant_ingest) if not frame.empty] or [graph_docs]
    all_docs = pd.concat(frames, ignore_index=True)
    logger.info(
        "Total documents: %d (%d graph + %d ingest)", len(all_docs), len(graph_docs), len(relevant_ingest)
    )
    # existing records come first, so keeping the first occurrence lets them win an id collision
    keep = ~all_docs["id"].duplicated(keep="first").to_numpy()
    result = cluster_documents(all_docs, config, lexicon, keep=keep)
    docs = drop_duplicate_ids(all_docs)

    nodes: list[dict[str, Any]] = []
    rows = zip(docs["payload"].tolist(), result.labels[keep].tolist(), result.positions[keep].tolist())
    for payload, label, (x, y) in rows:
        node = dict(payload)
        node["cluster"] = cluster_id(int(label))
        node["embedding"] = [float(x), float(y)]
        nodes.append(node)

    nodes_frame = pd.DataFrame(nodes) if nodes else pd.DataFrame(columns=["cluster"])
    clusters = build_cluster_records(result.terms, cluster_rationale(nodes_frame))

    stats = {
        "graph_documents": len(graph_docs),
        "ingest_candidates": len(raw_ingest),
        "ingest_relevant": len(relevant_ingest),
        "duplicates_dropped": len(all_docs) - len(docs),
        "vocabulary_size": result.vocabulary_size,
        "requested_k": result.requested_k,
        "clusters": len(clusters),
        "nodes": len(nodes),
    }
    return MergeResult(clusters=clusters, nodes=nodes, stats=stats)


def summarize_clusters(result: MergeResult) -> list[tuple[str, str, int]]:
    counts: dict[str, int] = {}
    for node in result.nodes:
        counts[node["cluster"]] = counts.get(node["cluster"], 0) + 1
    return [(c["id"], c["label"], counts.get(c["id"], 0)) for c in result.clusters]
