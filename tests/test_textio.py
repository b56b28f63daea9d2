import pytest

from agglomerative_points.agglomerative_clustering import Obj
from agglomerative_points.textio import (
    LoadError,
    format_cluster,
    load_clusters,
    print_cluster,
    print_clusters,
)


def write_points(tmp_path, text, name="objects.txt"):
    path = tmp_path / name
    path.write_text(text)
    return path


def test_load_clusters_with_count_header(tmp_path):
    """
    A count header limits how many records are read.

    Checks:
    - one singleton cluster per record
    - records past the count are ignored
    """
    path = write_points(tmp_path, "count=3\n40 86 663\n43 747 938\n47 285 973\n49 548 422\n")
    clusters = load_clusters(path)

    assert len(clusters) == 3
    assert [c.size for c in clusters] == [1, 1, 1]
    assert [c.capacity for c in clusters] == [1, 1, 1]
    assert clusters[0][0] == Obj(40, 86.0, 663.0)
    assert [c[0].id for c in clusters] == [40, 43, 47]


def test_load_clusters_without_header_skips_blank_lines(tmp_path):
    path = write_points(tmp_path, "1 0 0\n\n2 0 1.5\n   \n3 -5 5e1\n")
    clusters = load_clusters(str(path))

    assert [c[0] for c in clusters] == [Obj(1, 0.0, 0.0), Obj(2, 0.0, 1.5), Obj(3, -5.0, 50.0)]


def test_load_clusters_empty_count(tmp_path):
    path = write_points(tmp_path, "count=0\n1 0 0\n")
    assert load_clusters(path) == []


@pytest.mark.parametrize(
    "text, fragment",
    [
        ("count=3\n1 0 0\n2 1 1\n", "count=3 but only 2"),
        ("count=-1\n", "count must be >= 0"),
        ("1 0 0\n2 x 1\n", ":2:"),
        ("1 0 0 7\n", "expected 'id x y'"),
        ("1 0 0\n1 2 2\n", "duplicate object id 1"),
        ("1 nan 0\n", "finite"),
        ("1.5 0 0\n", "cannot parse"),
        ("99999999999999999999 0 0\n2 1 1\n", "does not fit in a 64-bit integer"),
        ("-9223372036854775809 0 0\n", "does not fit in a 64-bit integer"),
    ],
)
def test_load_clusters_rejects_bad_input(tmp_path, text, fragment):
    path = write_points(tmp_path, text)
    with pytest.raises(LoadError) as excinfo:
        load_clusters(path)
    assert fragment in str(excinfo.value)
    assert str(path) in str(excinfo.value)


def test_load_clusters_rejects_invalid_utf8(tmp_path):
    path = tmp_path / "objects.txt"
    path.write_bytes(b"1 0 0\n2 \xff 1\n")

    with pytest.raises(LoadError) as excinfo:
        load_clusters(path)
    assert "not valid UTF-8" in str(excinfo.value)
    assert isinstance(excinfo.value.__cause__, UnicodeDecodeError)


def test_load_clusters_accepts_largest_int64_id(tmp_path):
    path = write_points(tmp_path, "9223372036854775807 1 2\n")
    assert load_clusters(path)[0][0] == Obj(9223372036854775807, 1.0, 2.0)


def test_load_clusters_missing_file(tmp_path):
    with pytest.raises(FileNotFoundError):
        load_clusters(tmp_path / "missing.txt")


def test_format_and_print_cluster(tmp_path, capsys):
    path = write_points(tmp_path, "1 0 0.5\n2 86 663\n")
    clusters = load_clusters(path)

    assert format_cluster(clusters[0]) == "1[0,0.5]"

    print_cluster(clusters[1])
    assert capsys.readouterr().out == "2[86,663]\n"


def test_print_clusters(tmp_path, capsys):
    path = write_points(tmp_path, "1 0 0\n2 0 1\n3 5 5\n")
    clusters = load_clusters(path)

    print_clusters(clusters)

    assert capsys.readouterr().out == (
        "Clusters:\n"
        "cluster 0: 1[0,0]\n"
        "cluster 1: 2[0,1]\n"
        "cluster 2: 3[5,5]\n"
    )
