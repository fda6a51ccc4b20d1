"""Shared fixtures for concept hierarchy tests."""

import copy
import json

import pytest

from concept_hierarchy.store import MemoryDocumentStore

ROOT = "/project/model/root.json"
BASE = "/project/model/concepts/base.json"
FUNCTIONS = "/project/model/concepts/functions.json"
MORE = "/project/model/concepts/more.json"
INTEGER_DATA = "/project/model/data/integer.json"
ADD_HEADER = "/project/include/project/functions/add.h"

SAMPLE_DOCUMENTS = {
    ROOT: {
        "external": ["concepts/base.json", "concepts/functions.json", "missing.json"],
    },
    BASE: {
        "Concept": {},
        "ValueDomain": {"directParents": ["Concept"]},
        "Integer": {"directParents": ["ValueDomain"], "data": "../data/integer.json"},
    },
    FUNCTIONS: {
        "external": ["more.json"],
        "Function": {"directParents": ["ValueDomain"]},
        "Add": {"directParents": ["Function"], "data": {"header": "add.h"}},
    },
    MORE: {
        "Widget": {"directParents": ["Concept"]},
    },
    INTEGER_DATA: {
        "bits": 32,
        "Ghost": {},
    },
}


@pytest.fixture
def sample_store():
    """In-memory hierarchy spread over four concept documents and a data fragment."""
    return MemoryDocumentStore(
        copy.deepcopy(SAMPLE_DOCUMENTS),
        files=[ADD_HEADER],
        project_root="/project",
    )


@pytest.fixture
def sample_project(tmp_path):
    """Write the sample hierarchy to disk under ``tmp_path``."""
    for doc_id, content in SAMPLE_DOCUMENTS.items():
        path = tmp_path / doc_id[len("/project/"):]
        path.parent.mkdir(parents=True, exist_ok=True)
        path.write_text(json.dumps(content, indent=2))

    header = tmp_path / ADD_HEADER[len("/project/"):]
    header.parent.mkdir(parents=True, exist_ok=True)
    header.write_text("int add(int a, int b);\n")

    return tmp_path
