#!/usr/bin/env python3
# agglomerative_clustering.py
"""
Average-linkage agglomerative clustering of labeled 2-D points.

Every point starts as a singleton cluster. The driver repeatedly searches all cluster
pairs for the one with the smallest average pairwise distance, merges the second cluster
into the first and removes the emptied slot from the cluster list by swapping in the
last cluster. The loop stops once the requested number of clusters remains.

Clusters keep their objects in a NumPy structured array whose length is the cluster
capacity. Storage grows in fixed steps of CLUSTER_CHUNK objects, never by doubling.

Clusters are plain mutable objects: mutating one from several threads at once needs
external synchronization.

Doxygen-style docstrings are used (with @param / @return tags).
"""

import logging
from typing import Iterator, List, NamedTuple, Optional, Sequence, Tuple

import numpy as np

__all__ = [
    "CLUSTER_CHUNK",
    "OBJ_DTYPE",
    "Obj",
    "Cluster",
    "ClusterError",
    "EmptyClusterError",
    "ClusterAllocationError",
    "obj_distance",
    "pairwise_distances",
    "cluster_distance",
    "find_neighbours",
    "sort_cluster",
    "merge_clusters",
    "remove_cluster",
    "clusters_from_points",
    "agglomerative",
]

logger = logging.getLogger(__name__)

#: Number of objects a full cluster grows by on append.
CLUSTER_CHUNK = 10

OBJ_DTYPE = np.dtype([("id", np.int64), ("x", np.float64), ("y", np.float64)])


class ClusterError(ValueError):
    """Raised when a cluster operation is called with invalid arguments."""


class EmptyClusterError(ClusterError):
    """Raised when an operation needs a non-empty cluster."""


class ClusterAllocationError(RuntimeError):
    """Raised when cluster storage cannot be grown."""


class Obj(NamedTuple):
    """A labeled point in the plane."""

    id: int
    x: float
    y: float


def _allocate(capacity: int) -> np.ndarray:
    try:
        return np.zeros(capacity, dtype=OBJ_DTYPE)
    except MemoryError as exc:
        raise ClusterAllocationError(
            f"Cannot allocate storage for {capacity} objects."
        ) from exc


class Cluster:
    """
    Growable ordered sequence of objects with explicit size and capacity.

    @param capacity: number of objects to preallocate storage for (>= 0).
                     With 0 no storage is allocated and `obj` is None.
    @raises ClusterError: if capacity is negative.
    """

    def __init__(self, capacity: int = 0):
        if capacity < 0:
            raise ClusterError(f"Cluster capacity must be >= 0, got {capacity}.")
        self.size = 0
        self.capacity = capacity
        self.obj: Optional[np.ndarray] = _allocate(capacity) if capacity > 0 else None

    def clear(self) -> None:
        """
        Release the storage and reset to an empty cluster with zero capacity.
        Calling it on an already cleared cluster is harmless.
        """
        self.obj = None
        self.size = 0
        self.capacity = 0

    def resize(self, new_capacity: int) -> "Cluster":
        """
        Grow the storage to hold new_capacity objects.

        Capacity never shrinks: a new_capacity not larger than the current one
        leaves the cluster untouched. Existing objects keep their order.

        @param new_capacity: requested capacity (>= 0).
        @return: the cluster itself.
        @raises ClusterError: if new_capacity is negative.
        @raises ClusterAllocationError: if the new storage cannot be allocated.
        """
        if new_capacity < 0:
            raise ClusterError(f"Cluster capacity must be >= 0, got {new_capacity}.")
        if new_capacity <= self.capacity:
            return self

        storage = _allocate(new_capacity)
        if self.size:
            storage[: self.size] = self.obj[: self.size]
        self.obj = storage
        self.capacity = new_capacity
        return self

    def append(self, obj: Obj) -> None:
        """
        Add obj as the last object, growing by CLUSTER_CHUNK first when full.

        Growth may replace the storage array, so views of `obj` taken before
        the call must not be used afterwards.

        @param obj: object to append.
        @raises ClusterError: if the object id does not fit in 64 bits.
        """
        if obj is None:
            raise ClusterError("Cannot append None to a cluster.")
        if self.size == self.capacity:
            self.resize(self.capacity + CLUSTER_CHUNK)
        try:
            self.obj[self.size] = (obj.id, obj.x, obj.y)
        except OverflowError:
            raise ClusterError(f"Object id {obj.id} does not fit in a 64-bit integer.") from None
        self.size += 1

    def __len__(self) -> int:
        return self.size

    def __getitem__(self, index: int) -> Obj:
        if index < 0:
            index += self.size
        if not 0 <= index < self.size:
            raise IndexError(f"Object index out of range for cluster of size {self.size}.")
        record = self.obj[index]
        return Obj(int(record["id"]), float(record["x"]), float(record["y"]))

    def __iter__(self) -> Iterator[Obj]:
        for index in range(self.size):
            yield self[index]

    def __repr__(self) -> str:
        return f"Cluster(size={self.size}, capacity={self.capacity}, ids={self.ids.tolist()})"

    @property
    def ids(self) -> np.ndarray:
        """Copy of the object ids, in storage order."""
        if self.obj is None:
            return np.empty(0, dtype=np.int64)
        return self.obj["id"][: self.size].copy()

    @property
    def coords(self) -> np.ndarray:
        """Object coordinates as an array of shape (size, 2)."""
        if self.obj is None:
            return np.empty((0, 2), dtype=float)
        used = self.obj[: self.size]
        return np.column_stack((used["x"], used["y"]))


def obj_distance(o1: Obj, o2: Obj) -> float:
    """
    Euclidean distance between two objects.

    @param o1: first object
    @param o2: second object
    @return: sqrt((x1 - x2)^2 + (y1 - y2)^2)
    """
    if o1 is None or o2 is None:
        raise ClusterError("Cannot measure distance to a missing object.")
    return float(np.hypot(o1.x - o2.x, o1.y - o2.y))


def pairwise_distances(A: np.ndarray, B: np.ndarray) -> np.ndarray:
    """
    Euclidean distances between every row of A and every row of B.

    @param A: array shape (n, 2)
    @param B: array shape (m, 2)
    @return: array D shape (n, m) where D[i, j] is the distance between A[i] and B[j].
    """
    A = np.asarray(A, dtype=float)
    B = np.asarray(B, dtype=float)
    dx = A[:, None, 0] - B[None, :, 0]
    dy = A[:, None, 1] - B[None, :, 1]
    return np.hypot(dx, dy)


def _check_cluster(c: Cluster) -> None:
    if c is None:
        raise ClusterError("Expected a cluster, got None.")
    if c.size == 0:
        raise EmptyClusterError("Average distance is undefined for an empty cluster.")


def cluster_distance(c1: Cluster, c2: Cluster) -> float:
    """
    Average-linkage distance: mean of obj_distance over all cross pairs.

    @param c1: first non-empty cluster
    @param c2: second non-empty cluster
    @return: mean of the size(c1) * size(c2) pairwise distances.
    @raises EmptyClusterError: if either cluster holds no objects.
    """
    _check_cluster(c1)
    _check_cluster(c2)
    return float(pairwise_distances(c1.coords, c2.coords).mean())


def find_neighbours(clusters: Sequence[Cluster], narr: Optional[int] = None) -> Tuple[int, int]:
    """
    Find the two closest clusters among the first narr clusters.

    Pairs are scanned in increasing (i, j) order; when several pairs share the
    minimal distance the first one scanned is returned.

    @param clusters: sequence of non-empty clusters
    @param narr: number of leading clusters to consider, defaults to all of them
    @return: tuple (i, j) with 0 <= i < j < narr
    @raises ClusterError: if fewer than two clusters are considered.
    """
    if clusters is None:
        raise ClusterError("Expected a sequence of clusters, got None.")
    if narr is None:
        narr = len(clusters)
    if not 0 <= narr <= len(clusters):
        raise ClusterError(f"narr={narr} is out of range for {len(clusters)} clusters.")
    if narr < 2:
        raise ClusterError("At least two clusters are needed to find neighbours.")

    best = np.inf
    c1, c2 = -1, -1
    for i in range(narr):
        for j in range(i + 1, narr):
            dist = cluster_distance(clusters[i], clusters[j])
            # strict comparison keeps the earliest pair among equal distances
            if dist < best:
                best, c1, c2 = dist, i, j

    if c1 < 0:
        raise ClusterError("No finite distance between any pair of clusters.")
    return c1, c2


def sort_cluster(c: Cluster) -> None:
    """Sort the objects of c by ascending id. Equal ids keep no particular order."""
    if c is None:
        raise ClusterError("Expected a cluster, got None.")
    if c.size < 2:
        return
    used = c.obj[: c.size]
    c.obj[: c.size] = used[np.argsort(used["id"], kind="quicksort")]


def merge_clusters(c1: Cluster, c2: Cluster) -> None:
    """
    Append copies of all objects of c2 to c1, then sort c1 by id.

    c2 is left as it was; the caller decides what happens to it.

    @param c1: cluster receiving the objects
    @param c2: cluster whose objects are copied
    """
    if c1 is None or c2 is None:
        raise ClusterError("Cannot merge a missing cluster.")
    # snapshot first so merging a cluster into itself does not see its own appends
    for obj in list(c2):
        c1.append(obj)
    sort_cluster(c1)


def remove_cluster(clusters: List[Cluster], idx: int) -> int:
    """
    Remove the cluster at idx by clearing it and moving the last cluster into its slot.

    Removal is not stable: the cluster that was last now lives at idx, so any index
    held across this call must be looked up again.

    @param clusters: list of clusters; modified in-place
    @param idx: index of the cluster to remove, 0 <= idx < len(clusters)
    @return: number of clusters left, len(clusters) before the call minus one.
    """
    if clusters is None:
        raise ClusterError("Expected a list of clusters, got None.")
    narr = len(clusters)
    if narr == 0:
        raise ClusterError("Cannot remove a cluster from an empty list.")
    if not 0 <= idx < narr:
        raise ClusterError(f"Cluster index {idx} is out of range for {narr} clusters.")

    clusters[idx].clear()
    clusters[idx] = clusters[narr - 1]
    clusters.pop()
    return narr - 1


def clusters_from_points(X: np.ndarray, ids: Optional[Sequence[int]] = None) -> List[Cluster]:
    """
    Build one singleton cluster per row of X.

    @param X: array shape (n_points, 2)
    @param ids: optional object ids, defaults to 0..n_points-1
    @return: list of n_points clusters of size 1
    """
    X = np.asarray(X, dtype=float)
    if X.ndim != 2 or X.shape[1] != 2:
        raise ClusterError("X must be a 2D array of shape (n_points, 2).")
    if ids is None:
        ids = range(X.shape[0])
    elif len(ids) != X.shape[0]:
        raise ClusterError("ids must have one entry per point.")

    clusters = []
    for obj_id, (x, y) in zip(ids, X):
        c = Cluster(1)
        c.append(Obj(int(obj_id), float(x), float(y)))
        clusters.append(c)
    return clusters


def agglomerative(clusters: List[Cluster],
                  n_clusters: int = 1,
                  return_linkage: bool = False) -> Tuple[List[Cluster], Optional[np.ndarray]]:
    """
    Merge the nearest clusters until n_clusters remain.

    @param clusters: list of non-empty clusters; modified in-place
    @param n_clusters: desired number of clusters (1 <= n_clusters <= len(clusters))
    @param return_linkage: if True, also return a SciPy-style linkage matrix Z of shape
                           (n - n_clusters, 4) with rows [node_a, node_b, dist, new_size].
                           Input clusters are nodes 0..n-1, the k-th merge creates node n+k.

    @return: tuple (clusters, linkage_matrix_or_None)
    """
    if clusters is None:
        raise ClusterError("Expected a list of clusters, got None.")
    n = len(clusters)
    if not (1 <= n_clusters <= n):
        raise ClusterError(f"n_clusters must be between 1 and {n}, got {n_clusters}.")
    for c in clusters:
        _check_cluster(c)

    node_id = list(range(n))
    Z_rows: List[List[float]] = []
    next_node = n

    logger.info("Clustering %d clusters down to %d", n, n_clusters)
    narr = n
    while narr > n_clusters:
        i, j = find_neighbours(clusters, narr)
        dist = cluster_distance(clusters[i], clusters[j])
        new_size = clusters[i].size + clusters[j].size
        logger.debug("Merging clusters %d and %d (distance %g, size %d)", i, j, dist, new_size)
        if return_linkage:
            Z_rows.append([float(node_id[i]), float(node_id[j]), dist, float(new_size)])
            node_id[i] = next_node
            next_node += 1

        merge_clusters(clusters[i], clusters[j])
        narr = remove_cluster(clusters, j)
        # node ids follow the swap-with-last compaction
        node_id[j] = node_id[-1]
        node_id.pop()

    logger.info("Finished with %d clusters", narr)
    if return_linkage:
        Z = np.array(Z_rows, dtype=float).reshape(-1, 4)
        return clusters, Z
    return clusters, None
