from __future__ import annotations

from collections import Counter
from dataclasses import dataclass, field
from typing import Any, Sequence

import numpy as np
import pandas as pd

from radar.lexicon import Lexicon, default_lexicon
from radar.vectorize import FeatureMatrix

PRESENCE_THRESHOLD = 0.01
MAX_RANKED_TERMS = 10
MAX_LABEL_TERMS = 3
MAX_TOP_TERMS = 5
MAX_SAMPLE_QUESTIONS = 2


@dataclass
class ClusterTerms:
    label: str
    top_terms: list[str]
    label_terms: list[str] = field(default_factory=list)


@dataclass
class ClusterRationale:
    design_focus: str = ""
    sample_design_questions: list[str] = field(default_factory=list)


def cluster_id(index: int) -> str:
    return f"cluster-{index}"


def cluster_mean_scores(values: np.ndarray, labels: np.ndarray, n_clusters: int) -> np.ndarray:
    """Mean TF-IDF score of every term within every cluster, shape (n_clusters, n_terms)."""
    means = np.zeros((n_clusters, values.shape[1]), dtype=float)
    for cluster in range(n_clusters):
        members = values[labels == cluster]
        if members.shape[0] > 0:
            means[cluster] = members.sum(axis=0) / members.shape[0]
    return means


def ubiquity_penalty(means: np.ndarray, threshold: float = PRESENCE_THRESHOLD) -> np.ndarray:
    """Down-weight terms that score noticeably in many clusters."""
    n_clusters = means.shape[0]
    presence = (means > threshold).sum(axis=0)
    penalty = np.ones(means.shape[1], dtype=float)
    penalty[presence > n_clusters * 0.35] = 0.6
    penalty[presence > n_clusters * 0.5] = 0.3
    return penalty


def is_stem_duplicate(term: str, selected: Sequence[str]) -> bool:
    def strip_plural(word: str) -> str:
        return word[:-1] if word.endswith("s") else word

    return any(
        term.startswith(other) or other.startswith(term) or strip_plural(term) == strip_plural(other)
        for other in selected
    )


def dedupe_variants(terms: Sequence[str], limit: int = MAX_LABEL_TERMS) -> list[str]:
    kept: list[str] = []
    for term in terms:
        if len(kept) >= limit:
            break
        if not is_stem_duplicate(term, kept):
            kept.append(term)
    return kept


def _capitalize(term: str) -> str:
    return term[:1].upper() + term[1:]


def label_from_terms(terms: Sequence[str], index: int) -> str:
    if len(terms) >= 2:
        return " & ".join(_capitalize(t) for t in terms)
    if terms:
        return _capitalize(terms[0])
    return f"Cluster {index + 1}"


def top_terms_per_cluster(
    features: FeatureMatrix,
    labels: np.ndarray,
    lexicon: Lexicon | None = None,
) -> list[ClusterTerms]:
    """Label every cluster 0..max(labels) from its boosted, ubiquity-penalized mean TF-IDF."""
    lexicon = lexicon or default_lexicon()
    labels = np.asarray(labels, dtype=np.int64)
    if labels.size == 0:
        return []
    if labels.shape[0] != features.n_documents:
        raise ValueError(
            f"Got {labels.shape[0]} cluster assignments for {features.n_documents} documents"
        )

    n_clusters = int(labels.max()) + 1
    means = cluster_mean_scores(features.values, labels, n_clusters)
    boost = np.array(
        [lexicon.theme_boost if term.lower() in lexicon.theme_terms else 1.0 for term in features.vocabulary],
        dtype=float,
    )
    adjusted = means * boost * ubiquity_penalty(means)

    results: list[ClusterTerms] = []
    for cluster in range(n_clusters):
        scores = adjusted[cluster]
        order = np.argsort(-scores, kind="stable")[:MAX_RANKED_TERMS]
        ranked = [features.vocabulary[i] for i in order if scores[i] > 0]
        label_terms = dedupe_variants(ranked)
        results.append(
            ClusterTerms(
                label=label_from_terms(label_terms, cluster),
                top_terms=ranked[:MAX_TOP_TERMS],
                label_terms=label_terms,
            )
        )
    return results


def _as_list(value: Any) -> list[str]:
    if isinstance(value, (list, tuple)):
        return [str(v) for v in value if v]
    return []


def cluster_rationale(nodes: pd.DataFrame) -> dict[str, ClusterRationale]:
    """Most common design lever (seen at least twice) and first sample questions per cluster."""
    rationale: dict[str, ClusterRationale] = {}
    if nodes.empty:
        return rationale

    levers = nodes["designLevers"] if "designLevers" in nodes.columns else pd.Series([None] * len(nodes), index=nodes.index)
    questions = nodes["designQuestion"] if "designQuestion" in nodes.columns else pd.Series([""] * len(nodes), index=nodes.index)
    frame = pd.DataFrame({"cluster": nodes["cluster"], "levers": levers, "question": questions})

    for cid, group in frame.groupby("cluster", sort=False):
        counts: Counter[str] = Counter()
        for value in group["levers"]:
            counts.update(_as_list(value))

        focus = ""
        if counts:
            lever, count = counts.most_common(1)[0]
            if count >= 2:
                focus = lever.replace("_", " ")

        samples = [
            str(q).strip()
            for q in group["question"].tolist()
            if isinstance(q, str) and q.strip()
        ][:MAX_SAMPLE_QUESTIONS]
        rationale[str(cid)] = ClusterRationale(design_focus=focus, sample_design_questions=samples)
    return rationale


def apply_design_focus(label: str, design_focus: str) -> str:
    if not design_focus:
        return label
    if len(label.split(" & ")) >= 3 or design_focus.lower() in label.lower():
        return label
    return f"{_capitalize(design_focus)} & {label}"


def build_cluster_records(
    terms: Sequence[ClusterTerms],
    rationale: dict[str, ClusterRationale],
) -> list[dict[str, Any]]:
    records: list[dict[str, Any]] = []
    for index, result in enumerate(terms):
        cid = cluster_id(index)
        info = rationale.get(cid, ClusterRationale())
        record: dict[str, Any] = {
            "id": cid,
            "label": apply_design_focus(result.label, info.design_focus),
            "topTerms": list(result.top_terms),
            "sampleDesignQuestions": list(info.sample_design_questions),
        }
        if info.design_focus:
            record["designFocus"] = info.design_focus
        records.append(record)
    return records
