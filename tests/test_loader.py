"""Tests for docpack loading and path resolution."""

import logging
import zipfile
from pathlib import Path

import pytest

from localdoc_cli import config
from localdoc_cli.loader import DocpackError, decode_kind, extract_docpack, load_docpack, resolve_docpack_path
from localdoc_cli.models import ClusterNode, EdgeKind, FunctionNode, TypeKind, TypeNode


class TestLoadDocpack:
    """Tests for load_docpack."""

    def test_load_graph_and_metadata(self, write_docpack, clustered_graph):
        path = write_docpack("project", clustered_graph)

        pack = load_docpack(path)

        assert pack.path == path
        assert set(pack.graph.nodes) == set(clustered_graph.nodes)
        assert len(pack.graph.edges) == len(clustered_graph.edges)
        assert pack.graph.edges[0].kind is EdgeKind.CALLS
        assert pack.graph.metadata.languages == {"rust"}
        assert pack.metadata.source == "project.zip"
        assert pack.metadata.total_size_bytes == 2048
        assert pack.documentation is None

    def test_decoded_node_kinds(self, write_docpack, clustered_graph):
        pack = load_docpack(write_docpack("project", clustered_graph))

        read = pack.graph.nodes["io::read"]
        buffer = pack.graph.nodes["io::Buffer"]
        cluster = pack.graph.nodes["cluster_io"]

        assert isinstance(read.kind, FunctionNode)
        assert read.metadata.complexity == 4
        assert isinstance(buffer.kind, TypeNode)
        assert buffer.kind.kind is TypeKind.STRUCT
        assert buffer.kind.fields == clustered_graph.nodes["io::Buffer"].kind.fields
        assert isinstance(cluster.kind, ClusterNode)
        assert cluster.kind.centroid == [0.0, 0.0]
        assert cluster.kind.members == ["io::read", "io::write", "io::Buffer"]

    def test_load_documentation(self, write_docpack, old_graph, make_docs):
        docs = make_docs({"A": {"purpose": "adds", "cluster": "math"}})

        pack = load_docpack(write_docpack("documented", old_graph, documentation=docs))

        assert pack.documentation is not None
        assert pack.documentation.symbol_summaries["A"].purpose == "adds"
        assert pack.documentation.symbol_summaries["A"].semantic_cluster == "math"

    def test_bad_documentation_is_dropped(self, write_docpack, old_graph, caplog):
        path = write_docpack("baddocs", old_graph, raw_documentation='{"not": "docs"}')

        with caplog.at_level(logging.WARNING, logger="localdoc_cli.loader"):
            pack = load_docpack(path)

        assert pack.documentation is None
        assert "documentation.json" in caplog.text

    @pytest.mark.parametrize("member", ["graph.json", "metadata.json"])
    def test_missing_required_member(self, write_docpack, old_graph, member):
        path = write_docpack("partial", old_graph, skip=[member])

        with pytest.raises(DocpackError) as excinfo:
            load_docpack(path)

        assert member in str(excinfo.value)

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(DocpackError, match="file not found"):
            load_docpack(tmp_path / "nope.docpack")

    def test_not_a_zip(self, tmp_path: Path):
        path = tmp_path / "plain.docpack"
        path.write_text("definitely not a zip")

        with pytest.raises(DocpackError, match="not a zip archive"):
            load_docpack(path)

    def test_unparsable_graph(self, tmp_path: Path):
        path = tmp_path / "broken.docpack"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("graph.json", "{nodes: ")
            archive.writestr("metadata.json", "{}")

        with pytest.raises(DocpackError, match="graph.json"):
            load_docpack(path)

    def test_unknown_edge_kind(self, tmp_path: Path):
        path = tmp_path / "edges.docpack"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("graph.json", '{"nodes": {}, "edges": [{"source": "a", "target": "b", "kind": "Teleports"}]}')
            archive.writestr("metadata.json", "{}")

        with pytest.raises(DocpackError, match="invalid graph.json"):
            load_docpack(path)


class TestDecodeKind:
    """Tests for decode_kind."""

    def test_function(self):
        kind = decode_kind({"Function": {"name": "run", "signature": "fn run()", "parameters": [{"name": "x"}]}})

        assert isinstance(kind, FunctionNode)
        assert kind.parameters[0].name == "x"

    @pytest.mark.parametrize("data", [{"Gadget": {"name": "x"}}, {}, {"Function": {}, "Type": {}}, "Function"])
    def test_rejects_unknown_or_malformed(self, data):
        with pytest.raises((ValueError, TypeError)):
            decode_kind(data)


class TestResolvePath:
    """Tests for resolve_docpack_path."""

    def test_bare_name_goes_to_docpacks_dir(self):
        assert resolve_docpack_path(Path("serde")) == config.DOCPACKS_DIR / "serde.docpack"

    def test_bare_name_with_extension_kept(self):
        assert resolve_docpack_path(Path("serde.zip")) == config.DOCPACKS_DIR / "serde.zip"

    def test_relative_path_used_as_is(self):
        assert resolve_docpack_path(Path("packs/serde.docpack")) == Path("packs/serde.docpack")

    def test_absolute_path_used_as_is(self, tmp_path: Path):
        target = tmp_path / "x.docpack"
        assert resolve_docpack_path(target) == target


class TestExtractDocpack:
    """Tests for extract_docpack."""

    def test_extracts_members(self, tmp_path: Path, write_docpack, old_graph):
        out = tmp_path / "out" / "nested"

        extracted = extract_docpack(write_docpack("project", old_graph), out)

        assert [name for name, _ in extracted] == ["graph.json", "metadata.json"]
        assert (out / "graph.json").exists()
        assert extracted[1][1] == (out / "metadata.json").stat().st_size

    def test_member_paths_stay_inside_output(self, tmp_path: Path):
        path = tmp_path / "sneaky.docpack"
        with zipfile.ZipFile(path, "w") as archive:
            archive.writestr("../escape.txt", "x")
        out = tmp_path / "out"

        extract_docpack(path, out)

        assert (out / "escape.txt").exists()
        assert not (tmp_path / "escape.txt").exists()

    def test_missing_file(self, tmp_path: Path):
        with pytest.raises(DocpackError, match="file not found"):
            extract_docpack(tmp_path / "nope.docpack", tmp_path / "out")
