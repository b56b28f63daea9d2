from typing import Sequence

import matplotlib.pyplot as plt
from matplotlib.axes import Axes
import numpy as np

from .agglomerative_clustering import Cluster


def plot_clusters(axis: Axes, clusters: Sequence[Cluster]) -> None:
    """
    Plots the objects of each cluster in 2D, one colour per cluster.

    Args:
        axis (Axes): Axes to draw on.
        clusters (Sequence[Cluster]): Clusters to plot.
    """
    for index, cluster in enumerate(clusters):
        points = cluster.coords
        axis.scatter(points[:, 0], points[:, 1], label=f'Cluster {index}')
        for obj in cluster:
            axis.annotate(str(obj.id), (obj.x, obj.y), fontsize=8)

    axis.set_title('Agglomerative Clustering Results')
    axis.set_xlabel('x')
    axis.set_ylabel('y')
    if len(clusters):
        axis.legend()
    axis.grid(True)


def plot_dendrogram(axis: Axes, Z: np.ndarray) -> None:
    """
    Plots the dendrogram of a full merge history.

    Args:
        axis (Axes): Axes to draw on.
        Z (np.ndarray): Linkage matrix of shape (n_objects - 1, 4).
    """
    from scipy.cluster.hierarchy import dendrogram

    dendrogram(Z, ax=axis)
    axis.set_title('Dendrogram for Agglomerative Clustering')
    axis.set_xlabel('Cluster Node')
    axis.set_ylabel('Average Distance')


if __name__ == "__main__":
    from agglomerative_points.agglomerative_clustering import agglomerative, clusters_from_points

    rng = np.random.RandomState(0)
    A = rng.normal(loc=0.0, scale=0.3, size=(10, 2))
    B = rng.normal(loc=2.0, scale=0.3, size=(8, 2))
    X = np.vstack([A, B])

    _, Z = agglomerative(clusters_from_points(X), n_clusters=1, return_linkage=True)
    clusters, _ = agglomerative(clusters_from_points(X), n_clusters=2)

    fig, (ax1, ax2) = plt.subplots(1, 2, figsize=(12, 5))
    plot_clusters(ax1, clusters)
    plot_dendrogram(ax2, Z)
    plt.show()
