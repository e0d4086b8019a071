from __future__ import annotations

import math

import numpy as np
from sklearn.decomposition import PCA

from radar.config import Viewport


def pca_2d(matrix: np.ndarray) -> np.ndarray:
    """Project rows onto the top two principal components.

    Axis signs follow scikit-learn's SVD sign convention, so only the relative
    layout is meaningful. Missing components (fewer than two usable
    dimensions) are filled with zeros.
    """
    matrix = np.asarray(matrix, dtype=float)
    n_samples = matrix.shape[0]
    projected = np.zeros((n_samples, 2), dtype=float)
    if n_samples < 2 or matrix.ndim != 2 or matrix.shape[1] == 0:
        return projected

    centered = matrix - matrix.mean(axis=0)
    if np.allclose(centered, 0.0):
        return projected

    n_components = min(2, n_samples, matrix.shape[1])
    reducer = PCA(n_components=n_components, svd_solver="full")
    projected[:, :n_components] = reducer.fit_transform(matrix)
    return projected


def scale_to_viewport(points: np.ndarray, viewport: Viewport) -> np.ndarray:
    points = np.asarray(points, dtype=float)
    if points.shape[0] == 0:
        return np.zeros((0, 2), dtype=float)

    mins = points.min(axis=0)
    ranges = points.max(axis=0) - mins
    ranges[ranges == 0] = 1.0

    scaled = np.empty_like(points[:, :2])
    scaled[:, 0] = viewport.x_min + (points[:, 0] - mins[0]) / ranges[0] * viewport.width
    scaled[:, 1] = viewport.y_min + (points[:, 1] - mins[1]) / ranges[1] * viewport.height
    return scaled


def ring_targets(n_clusters: int, viewport: Viewport) -> np.ndarray:
    """Anchor positions: an inner ring of ~35% of clusters and an outer ring for the rest."""
    center_x, center_y = viewport.center
    inner_count = max(1, int(math.floor(n_clusters * 0.35)))
    outer_count = n_clusters - inner_count

    targets = np.zeros((n_clusters, 2), dtype=float)
    for cluster in range(n_clusters):
        on_inner = cluster < inner_count
        ring_size = inner_count if on_inner else outer_count
        ring_index = cluster if on_inner else cluster - inner_count
        radius = 0.22 if on_inner else 0.45
        angle = 2 * math.pi * ring_index / ring_size - math.pi / 2
        targets[cluster, 0] = center_x + radius * viewport.width * math.cos(angle)
        targets[cluster, 1] = center_y + radius * viewport.height * math.sin(angle)
    return targets


def compose_rings(
    points2d: np.ndarray,
    labels: np.ndarray,
    n_clusters: int,
    viewport: Viewport,
    spread: float = 0.48,
) -> np.ndarray:
    """Move each cluster onto its ring anchor, keeping a shrunken copy of its internal layout."""
    points2d = np.asarray(points2d, dtype=float)
    labels = np.asarray(labels, dtype=np.int64)
    if points2d.shape[0] == 0 or n_clusters == 0:
        return points2d.copy()

    targets = ring_targets(n_clusters, viewport)
    composed = np.empty_like(points2d)
    for cluster in range(n_clusters):
        mask = labels == cluster
        if not mask.any():
            continue
        centroid = points2d[mask].mean(axis=0)
        composed[mask] = targets[cluster] + spread * (points2d[mask] - centroid)

    composed[:, 0] = np.clip(composed[:, 0], viewport.x_min, viewport.x_max)
    composed[:, 1] = np.clip(composed[:, 1], viewport.y_min, viewport.y_max)
    return composed
