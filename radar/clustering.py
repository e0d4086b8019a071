from __future__ import annotations

from dataclasses import dataclass
import logging

import numpy as np

from radar.config import MAX_K

logger = logging.getLogger(__name__)


@dataclass
class KMeansResult:
    labels: np.ndarray
    centroids: np.ndarray
    iterations: int
    converged: bool


def clamp_k(k: int, n_documents: int, max_k: int = MAX_K) -> int:
    return max(0, min(int(k), int(n_documents), int(max_k)))


def make_rng(seed: int) -> np.random.Generator:
    # PCG64 is pinned so seeding never depends on numpy's default bit generator
    return np.random.Generator(np.random.PCG64(seed))


def _squared_distances(points: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    point_norms = np.einsum("ij,ij->i", points, points)[:, None]
    centroid_norms = np.einsum("ij,ij->i", centroids, centroids)[None, :]
    distances = point_norms - 2.0 * points @ centroids.T + centroid_norms
    return np.maximum(distances, 0.0)


def kmeans(
    points: np.ndarray,
    k: int,
    seed: int = 42,
    max_iterations: int = 100,
) -> KMeansResult:
    """Lloyd's algorithm with centroids seeded from k distinct random rows.

    Ties in the nearest-centroid step go to the lowest cluster index, and a
    cluster that loses all its members keeps its previous centroid.
    """
    points = np.asarray(points, dtype=float)
    if points.ndim != 2:
        raise ValueError(f"kmeans expects a 2-D matrix, got shape {points.shape}")
    n_samples = points.shape[0]
    if not 1 <= k <= n_samples:
        raise ValueError(f"k must be between 1 and the number of points ({n_samples}), got {k}")

    rng = make_rng(seed)
    initial = np.sort(rng.choice(n_samples, size=k, replace=False))
    centroids = points[initial].copy()

    labels = np.full(n_samples, -1, dtype=np.int64)
    converged = False
    iterations = 0
    for iterations in range(1, max_iterations + 1):
        new_labels = np.argmin(_squared_distances(points, centroids), axis=1).astype(np.int64)
        if np.array_equal(new_labels, labels):
            converged = True
            break
        labels = new_labels
        for cluster in range(k):
            members = points[labels == cluster]
            if members.shape[0] > 0:
                centroids[cluster] = members.mean(axis=0)

    if not converged:
        logger.debug("k-means stopped at the iteration cap (%d) before converging", max_iterations)
    return KMeansResult(labels=labels, centroids=centroids, iterations=iterations, converged=converged)


def _cluster_centroid(points: np.ndarray, labels: np.ndarray, cluster: int) -> np.ndarray:
    return points[labels == cluster].mean(axis=0)


def renumber_dense(labels: np.ndarray) -> tuple[np.ndarray, int]:
    """Relabel clusters 0..k'-1 in order of first appearance."""
    mapping: dict[int, int] = {}
    for label in labels.tolist():
        if label not in mapping:
            mapping[label] = len(mapping)
    remapped = np.array([mapping[label] for label in labels.tolist()], dtype=np.int64)
    return remapped, len(mapping)


def merge_small_clusters(
    points2d: np.ndarray,
    labels: np.ndarray,
    min_size: int = 3,
) -> tuple[np.ndarray, int]:
    """Fold clusters smaller than ``min_size`` into the cluster with the nearest 2-D centroid.

    When only one non-empty cluster remains there is no merge target; it is
    kept as is even if it is still below ``min_size``.
    """
    points2d = np.asarray(points2d, dtype=float)
    assignments = np.asarray(labels, dtype=np.int64).copy()
    if assignments.size == 0:
        return assignments, 0
    if points2d.shape[0] != assignments.shape[0]:
        raise ValueError(
            f"Got {points2d.shape[0]} positions for {assignments.shape[0]} cluster assignments"
        )

    n_clusters = int(assignments.max()) + 1
    while True:
        counts = np.bincount(assignments, minlength=n_clusters)
        undersized = [c for c in range(n_clusters) if 0 < counts[c] < min_size]
        if not undersized:
            break
        small = undersized[0]
        small_centroid = _cluster_centroid(points2d, assignments, small)

        nearest = -1
        best = np.inf
        for other in range(n_clusters):
            if other == small or counts[other] == 0:
                continue
            delta = _cluster_centroid(points2d, assignments, other) - small_centroid
            distance = float(np.dot(delta, delta))
            if distance < best:
                best = distance
                nearest = other

        if nearest == -1:
            logger.warning(
                "Cluster %d has %d member(s), below the minimum of %d, and no other cluster to merge into",
                small,
                int(counts[small]),
                min_size,
            )
            break

        logger.debug("Merging cluster %d (%d members) into cluster %d", small, int(counts[small]), nearest)
        assignments[assignments == small] = nearest

    return renumber_dense(assignments)


def restrict_to_kept(
    points2d: np.ndarray,
    labels: np.ndarray,
    keep: np.ndarray,
    min_size: int = 3,
) -> tuple[np.ndarray, int]:
    """Re-merge clusters over the rows in ``keep`` and map every row onto the result.

    A dropped row takes the final label of the cluster it was assigned to, or
    -1 when none of that cluster's rows were kept.
    """
    points2d = np.asarray(points2d, dtype=float)
    labels = np.asarray(labels, dtype=np.int64)
    keep = np.asarray(keep, dtype=bool)
    if keep.shape[0] != labels.shape[0]:
        raise ValueError(f"Got a keep mask of {keep.shape[0]} rows for {labels.shape[0]} cluster assignments")

    kept_labels, n_clusters = merge_small_clusters(points2d[keep], labels[keep], min_size)
    # the merger moves whole clusters, so every old label maps to exactly one new label
    mapping = dict(zip(labels[keep].tolist(), kept_labels.tolist()))
    remapped = np.array([mapping.get(label, -1) for label in labels.tolist()], dtype=np.int64)
    return remapped, n_clusters
