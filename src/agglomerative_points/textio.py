"""Loading point records from text files and printing clusters."""

import logging
import math
import re
import sys
from pathlib import Path
from typing import Iterable, List, Optional, Set, TextIO, Union

import numpy as np

from .agglomerative_clustering import Cluster, Obj

__all__ = [
    "LoadError",
    "load_clusters",
    "format_cluster",
    "print_cluster",
    "print_clusters",
]

logger = logging.getLogger(__name__)

_ID_RANGE = np.iinfo(np.int64)
_COUNT_HEADER = re.compile(r"count\s*=\s*(-?\d+)")


class LoadError(ValueError):
    """Raised when an input file does not hold valid point records."""

    def __init__(self, path: Path, line_no: int, message: str):
        super().__init__(f"{path}:{line_no}: {message}")
        self.path = path
        self.line_no = line_no


def _parse_record(path: Path, line_no: int, line: str) -> Obj:
    fields = line.split()
    if len(fields) != 3:
        raise LoadError(path, line_no, f"expected 'id x y', got {line.strip()!r}")
    try:
        obj_id = int(fields[0])
        x = float(fields[1])
        y = float(fields[2])
    except ValueError:
        raise LoadError(path, line_no, f"cannot parse {line.strip()!r} as 'id x y'") from None
    if not _ID_RANGE.min <= obj_id <= _ID_RANGE.max:
        raise LoadError(path, line_no, f"object id {obj_id} does not fit in a 64-bit integer")
    if not (math.isfinite(x) and math.isfinite(y)):
        raise LoadError(path, line_no, "coordinates must be finite numbers")
    return Obj(obj_id, x, y)


def load_clusters(path: Union[str, Path]) -> List[Cluster]:
    """
    Load one singleton cluster per object record in a text file.

    Each record line holds ``id x y``. An optional first line ``count=N``
    limits loading to the first N records. Blank lines are skipped.
    """

    path = Path(path)
    limit: Optional[int] = None
    clusters: List[Cluster] = []
    seen: Set[int] = set()
    line_no = 0

    with path.open(encoding="utf-8") as handle:
        try:
            for line_no, line in enumerate(handle, start=1):
                stripped = line.strip()
                if not stripped:
                    logger.debug("Skipping blank line %s:%d", path, line_no)
                    continue
                if not clusters and limit is None:
                    header = _COUNT_HEADER.fullmatch(stripped)
                    if header:
                        limit = int(header.group(1))
                        if limit < 0:
                            raise LoadError(path, line_no, f"count must be >= 0, got {limit}")
                        continue
                if limit is not None and len(clusters) >= limit:
                    break

                obj = _parse_record(path, line_no, line)
                if obj.id in seen:
                    raise LoadError(path, line_no, f"duplicate object id {obj.id}")
                seen.add(obj.id)

                cluster = Cluster(1)
                cluster.append(obj)
                clusters.append(cluster)
        except UnicodeDecodeError as exc:
            # decoding reads ahead, so report the first line not yet parsed
            raise LoadError(path, line_no + 1, "input is not valid UTF-8") from exc

    if limit is not None and len(clusters) < limit:
        raise LoadError(path, line_no, f"count={limit} but only {len(clusters)} records present")

    logger.info("Loaded %d objects from %s", len(clusters), path)
    return clusters


def format_cluster(c: Cluster) -> str:
    """Render the objects of c as ``id[x,y]`` items separated by single spaces."""

    return " ".join(f"{obj.id}[{obj.x:g},{obj.y:g}]" for obj in c)


def print_cluster(c: Cluster, file: Optional[TextIO] = None) -> None:
    """Write format_cluster(c) and a newline to file, stdout by default."""

    print(format_cluster(c), file=file or sys.stdout)


def print_clusters(clusters: Iterable[Cluster], file: Optional[TextIO] = None) -> None:
    """Print every cluster on its own line, prefixed by its index."""

    out = file or sys.stdout
    print("Clusters:", file=out)
    for index, c in enumerate(clusters):
        print(f"cluster {index}: {format_cluster(c)}", file=out)
