"""Tests for file path completion."""

import pytest
from lsprotocol.types import CompletionItemKind

from editcomplete.completion.path import complete_directory, path_completion
from editcomplete.completion.types import PATH_PROVIDER
from editcomplete.editor.document import Document, DocumentId

from tests.helpers import labels


@pytest.fixture
def project(tmp_path):
    (tmp_path / "src").mkdir()
    (tmp_path / "src" / "main.py").write_text("")
    (tmp_path / "src" / "util").mkdir()
    (tmp_path / "README").write_text("")
    return tmp_path


def test_no_separator_no_request():
    doc = Document(DocumentId(1), "import os")

    assert path_completion(doc, len(doc.text)) is None


@pytest.mark.asyncio
async def test_relative_to_document(project):
    doc = Document(DocumentId(1), 'open("src/', path=project / "notes.txt")

    response = await path_completion(doc, len(doc.text))

    assert response.provider == PATH_PROVIDER
    assert not response.incomplete
    assert labels(response.items) == ["main.py", "util/"]


@pytest.mark.asyncio
async def test_absolute_path(project):
    doc = Document(DocumentId(1), f"cat {project}/")

    response = await path_completion(doc, len(doc.text))

    assert labels(response.items) == ["README", "src/"]


@pytest.mark.asyncio
async def test_item_kinds(project):
    response = await complete_directory(project / "src")

    by_label = {item.label: item for item in response.items}
    assert by_label["main.py"].kind == CompletionItemKind.File
    assert by_label["util/"].kind == CompletionItemKind.Folder
    assert by_label["util/"].insert_text == "util"
    assert by_label["util/"].filter_text == "util"


@pytest.mark.asyncio
async def test_missing_directory(project):
    response = await complete_directory(project / "does-not-exist")

    assert response.items == []
