from pathlib import Path

from agglomerative_points.agglomerative_clustering import agglomerative, clusters_from_points
from agglomerative_points.textio import load_clusters, print_clusters

if __name__ == "__main__":
    # Example dataset
    X = [
        [1.0, 0.0],
        [9.0, 1.0],
        [1.0, 1.0],
        [6.0, 2.0],
        [5.0, 6.0],
    ]

    # Perform agglomerative clustering
    clusters, _ = agglomerative(clusters_from_points(X, ids=[10, 20, 30, 40, 50]), n_clusters=3)
    print_clusters(clusters)

    # Same thing from a text file
    clusters = load_clusters(Path(__file__).with_name("objects.txt"))
    clusters, _ = agglomerative(clusters, n_clusters=8)
    print_clusters(clusters)
