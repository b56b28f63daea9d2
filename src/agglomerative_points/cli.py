"""Command-line entry point: load points, cluster them and print the result."""

import argparse
import logging
import sys
from pathlib import Path
from typing import Optional, Sequence

from .agglomerative_clustering import ClusterAllocationError, ClusterError, agglomerative
from .config import ConfigError, RunConfig, resolve_log_level
from .textio import LoadError, load_clusters, print_clusters

logger = logging.getLogger(__name__)


def build_parser() -> argparse.ArgumentParser:
    parser = argparse.ArgumentParser(
        prog="agglomerative-points",
        description="Average-linkage agglomerative clustering of labeled 2-D points.",
    )
    parser.add_argument("file", help="Input file with one 'id x y' record per line.")
    parser.add_argument(
        "n_clusters",
        nargs="?",
        type=int,
        default=1,
        help="Number of clusters to stop at (default: 1).",
    )
    parser.add_argument(
        "--log-level",
        default=None,
        help="Logging level (default: $AGGLOMERATIVE_POINTS_LOG_LEVEL or WARNING).",
    )
    parser.add_argument(
        "--plot",
        action="store_true",
        help="Show a scatter plot of the resulting clusters.",
    )
    return parser


def config_from_args(args: argparse.Namespace) -> RunConfig:
    config = RunConfig(
        input_path=Path(args.file),
        n_clusters=args.n_clusters,
        log_level=resolve_log_level(args.log_level),
        plot=args.plot,
    )
    config.validate()
    return config


def run(config: RunConfig) -> int:
    logger.debug("Run configuration: %s", config)
    clusters = load_clusters(config.input_path)
    if config.n_clusters > len(clusters):
        raise ClusterError(
            f"Cannot form {config.n_clusters} clusters from {len(clusters)} objects."
        )

    clusters, _ = agglomerative(clusters, n_clusters=config.n_clusters)
    print_clusters(clusters)

    if config.plot:
        import matplotlib.pyplot as plt

        from .plotting import plot_clusters

        _, axis = plt.subplots()
        plot_clusters(axis, clusters)
        plt.show()
    return 0


def main(argv: Optional[Sequence[str]] = None) -> int:
    parser = build_parser()
    args = parser.parse_args(argv)

    try:
        config = config_from_args(args)
        logging.basicConfig(
            level=config.log_level,
            format="%(asctime)s %(levelname)s %(name)s: %(message)s",
        )
        return run(config)
    except (ConfigError, LoadError, ClusterError, ClusterAllocationError) as exc:
        print(f"error: {exc}", file=sys.stderr)
        return 1
    except OSError as exc:
        print(f"error: cannot read {args.file}: {exc.strerror or exc}", file=sys.stderr)
        return 1


if __name__ == "__main__":
    sys.exit(main())
