"""K-means clustering with automatic cluster-count selection.

Clustering is a cheap stand-in for segmentation: it tells apart a frame
where the camera is centred on one item from one where several items are
spread across the shelf. The number of clusters is picked per frame with an
elbow test on the k-means inertia.
"""

from __future__ import annotations

from dataclasses import dataclass, field

import numpy as np

from grocersee.common.logging import get_logger
from grocersee.errors import ConfigurationError

log = get_logger("grocersee.clustering")


@dataclass
class KMeansResult:
    """One k-means run."""

    labels: np.ndarray  # (N,) ints in [0, k)
    centroids: np.ndarray  # (k, dim)
    k: int
    inertia: float
    iterations: int


@dataclass
class ClusterAssignment:
    """Cluster labels for a frame and how k was chosen."""

    labels: np.ndarray
    k: int
    runs: dict[int, KMeansResult] = field(default_factory=dict)

    @property
    def inertias(self) -> dict[int, float]:
        return {k: run.inertia for k, run in self.runs.items()}


def _distances(features: np.ndarray, centroids: np.ndarray) -> np.ndarray:
    diff = features[:, np.newaxis, :] - centroids[np.newaxis, :, :]
    return np.sqrt(np.sum(diff * diff, axis=2))


def kmeans(
    features: np.ndarray,
    k: int,
    rng: np.random.Generator,
    max_iterations: int = 100,
) -> KMeansResult:
    """Run k-means from uniformly random centroids in [0, 1).

    Each round assigns every point to its nearest centroid (ties go to the
    lowest centroid index) and then moves each centroid to the mean of its
    points. A centroid with no points keeps its previous position. Stops
    when no assignment changes or after ``max_iterations`` rounds.

    Args:
        features: Array of shape (N, dim), N >= 1.
        k: Number of clusters.
        rng: Random source for centroid initialisation.
        max_iterations: Round cap.

    Returns:
        Labels, final centroids and inertia (sum of point-to-centroid
        Euclidean distances).
    """
    features = np.asarray(features, dtype=np.float64)
    n, dim = features.shape

    centroids = rng.random((k, dim))
    labels = np.zeros(n, dtype=np.int64)

    iterations = 0
    changed = True
    while changed and iterations < max_iterations:
        new_labels = np.argmin(_distances(features, centroids), axis=1)
        changed = bool(np.any(new_labels != labels))
        labels = new_labels

        for j in range(k):
            members = features[labels == j]
            if len(members):
                centroids[j] = members.mean(axis=0)

        iterations += 1

    assigned = centroids[labels]
    inertia = float(np.sum(np.sqrt(np.sum((features - assigned) ** 2, axis=1))))

    return KMeansResult(
        labels=labels,
        centroids=centroids,
        k=k,
        inertia=inertia,
        iterations=iterations,
    )


def select_k(inertias: list[float], tolerance: float = 0.5) -> int:
    """Elbow test over inertias for k = 1, 2, ...

    Picks 2 when the inertia drop from k=1 to k=2 is about as large as the
    drop from k=2 to k=3 (their difference is under ``tolerance`` times the
    first drop), otherwise 1.
    """
    if len(inertias) > 1:
        diffs = [b - a for a, b in zip(inertias, inertias[1:])]
        if len(diffs) > 1 and abs(diffs[0] - diffs[1]) < tolerance * abs(diffs[0]):
            return 2
    return 1


class KMeansClusterer:
    """Cluster feature vectors with k chosen per call."""

    def __init__(
        self,
        max_k: int = 5,
        max_iterations: int = 100,
        elbow_tolerance: float = 0.5,
        fixed_k: int | None = None,
        rng: np.random.Generator | int | None = None,
    ) -> None:
        """
        Args:
            max_k: Largest k tried.
            max_iterations: Round cap for each k-means run.
            elbow_tolerance: Relative tolerance of the elbow test.
            fixed_k: Use this k (capped at N) instead of the elbow test.
            rng: Generator or seed for centroid initialisation. Drawn from
                process entropy when None.
        """
        if max_k < 1:
            raise ConfigurationError(f"max_k must be at least 1, got {max_k}")
        if max_iterations < 1:
            raise ConfigurationError(f"max_iterations must be at least 1, got {max_iterations}")
        if fixed_k is not None and not 1 <= fixed_k <= max_k:
            raise ConfigurationError(f"fixed_k must be within [1, {max_k}], got {fixed_k}")

        self.max_k = max_k
        self.max_iterations = max_iterations
        self.elbow_tolerance = elbow_tolerance
        self.fixed_k = fixed_k
        self.rng = np.random.default_rng(rng)

    def fit(
        self,
        features: np.ndarray,
        rng: np.random.Generator | None = None,
    ) -> ClusterAssignment:
        """Assign each feature vector to a cluster.

        Args:
            features: Array of shape (N, dim).
            rng: Overrides the clusterer's own generator for this call.

        Returns:
            Cluster labels in ``[0, k)`` and the k-means runs behind them.
        """
        features = np.asarray(features, dtype=np.float64)
        n = features.shape[0]
        rng = rng if rng is not None else self.rng

        if n < 2:
            return ClusterAssignment(labels=np.zeros(n, dtype=np.int64), k=1)

        if self.fixed_k is not None:
            k = min(self.fixed_k, n)
            runs = {k: kmeans(features, k, rng, self.max_iterations)}
        else:
            runs = {
                k: kmeans(features, k, rng, self.max_iterations)
                for k in range(1, min(n, self.max_k) + 1)
            }
            k = select_k([runs[i].inertia for i in sorted(runs)], self.elbow_tolerance)

        log.debug(
            "cluster_count_selected",
            points=n,
            k=k,
            inertias={i: round(run.inertia, 4) for i, run in runs.items()},
        )
        return ClusterAssignment(labels=runs[k].labels, k=k, runs=runs)
