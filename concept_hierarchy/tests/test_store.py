"""Tests for document stores."""

import json

import pytest

from concept_hierarchy.errors import MalformedDocumentError
from concept_hierarchy.store import (
    FileDocumentStore,
    MemoryDocumentStore,
    document_id,
    join_path,
)


class TestJoinPath:
    """Tests for path joining."""

    def test_strips_separators(self):
        assert join_path("include/proj/", "/functions/add.h") == "include/proj/functions/add.h"

    def test_plain_join(self):
        assert join_path("a", "b") == "a/b"

    def test_empty_base(self):
        assert join_path("", "b.json") == "b.json"


class TestFileDocumentStore:
    """Tests for the file-system store."""

    def test_read_json_document(self, tmp_path):
        """JSON documents are parsed into object nodes."""
        doc = tmp_path / "root.json"
        doc.write_text(json.dumps({"external": ["a.json"]}))
        store = FileDocumentStore(tmp_path)

        node = store.read(document_id(doc))

        assert node is not None
        assert node.get("external").strings() == ["a.json"]

    def test_read_missing_returns_none(self, tmp_path):
        store = FileDocumentStore(tmp_path)
        assert store.read(document_id(tmp_path / "missing.json")) is None

    def test_read_non_json_returns_none(self, tmp_path):
        """Files without a structured suffix are not documents."""
        header = tmp_path / "add.h"
        header.write_text("int add(int, int);")
        store = FileDocumentStore(tmp_path)

        assert store.read(document_id(header)) is None

    def test_read_invalid_json_raises(self, tmp_path):
        doc = tmp_path / "bad.json"
        doc.write_text("{broken")
        store = FileDocumentStore(tmp_path)

        with pytest.raises(MalformedDocumentError):
            store.read(document_id(doc))

    def test_read_undecodable_raises(self, tmp_path):
        doc = tmp_path / "binary.json"
        doc.write_bytes(b"\xff\xfe\xfa")
        store = FileDocumentStore(tmp_path)

        with pytest.raises(MalformedDocumentError):
            store.read(document_id(doc))

    def test_resolve_relative_to_document_directory(self, tmp_path):
        (tmp_path / "concepts").mkdir()
        (tmp_path / "concepts" / "base.json").write_text("{}")
        (tmp_path / "root.json").write_text("{}")
        store = FileDocumentStore(tmp_path)

        target = store.resolve_relative(document_id(tmp_path / "root.json"), "concepts/base.json")

        assert target == document_id(tmp_path / "concepts" / "base.json")

    def test_resolve_normalizes_parent_segments(self, tmp_path):
        """Different spellings of the same file resolve to one identifier."""
        (tmp_path / "a").mkdir()
        (tmp_path / "b").mkdir()
        (tmp_path / "b" / "x.json").write_text("{}")
        (tmp_path / "a" / "doc.json").write_text("{}")
        store = FileDocumentStore(tmp_path)

        base = document_id(tmp_path / "a" / "doc.json")
        via_parent = store.resolve_relative(base, "../b/x.json")
        via_root = store.resolve_project_path("b/x.json")

        assert via_parent == via_root

    def test_resolve_missing_returns_none(self, tmp_path):
        (tmp_path / "root.json").write_text("{}")
        store = FileDocumentStore(tmp_path)

        assert store.resolve_relative(document_id(tmp_path / "root.json"), "nope.json") is None

    def test_resolve_blank_returns_none(self, tmp_path):
        (tmp_path / "root.json").write_text("{}")
        store = FileDocumentStore(tmp_path)

        assert store.resolve_relative(document_id(tmp_path / "root.json"), "   ") is None

    def test_resolve_project_path_absolute(self, tmp_path):
        doc = tmp_path / "root.json"
        doc.write_text("{}")
        store = FileDocumentStore(tmp_path / "elsewhere")

        assert store.resolve_project_path(str(doc)) == document_id(doc)


class TestMemoryDocumentStore:
    """Tests for the in-memory store."""

    def test_read_dict_and_text(self):
        store = MemoryDocumentStore({
            "/a.json": {"A": {}},
            "/b.json": '{"B": {}}',
        })

        assert store.read("/a.json").keys() == ["A"]
        assert store.read("/b.json").keys() == ["B"]

    def test_identifiers_are_normalized(self):
        store = MemoryDocumentStore({"docs/x.json": {}})

        assert store.resolve_relative("/docs/sub/y.json", "../x.json") == "/docs/x.json"

    def test_plain_files_resolve_but_do_not_read(self):
        store = MemoryDocumentStore({"/docs/x.json": {}}, files=["/docs/x.h"])

        assert store.resolve_relative("/docs/x.json", "x.h") == "/docs/x.h"
        assert store.read("/docs/x.h") is None

    def test_project_path(self):
        store = MemoryDocumentStore(files=["/project/include/p/a.h"], project_root="/project")

        assert store.resolve_project_path("include/p/a.h") == "/project/include/p/a.h"
        assert store.resolve_project_path("include/p/b.h") is None

    def test_canonical_id(self):
        store = MemoryDocumentStore()

        assert store.canonical_id("p/./sub/../root.json") == "/p/root.json"
        assert store.canonical_id("/p/root.json") == "/p/root.json"


class TestCanonicalFileIds:
    """Relative spellings of a file map to its resolved path."""

    def test_relative_to_working_directory(self, tmp_path, monkeypatch):
        (tmp_path / "root.json").write_text("{}")
        monkeypatch.chdir(tmp_path)
        store = FileDocumentStore(tmp_path)

        assert store.canonical_id("root.json") == document_id(tmp_path / "root.json")
        assert store.canonical_id("./sub/../root.json") == document_id(tmp_path / "root.json")
