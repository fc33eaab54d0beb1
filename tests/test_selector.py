#!/usr/bin/env python3
"""Pytest-based tests for document selection and link closure."""

from __future__ import annotations

from collections import Counter
from typing import List, Optional

import pytest
from loguru import logger

from vault_exporter.selection.selector import (
    DocumentSelector,
    SelectionCriteria,
    select_documents,
)
from vault_exporter.vault.index import InMemoryVault, VaultError
from vault_exporter.vault.models import Document

# Configure loguru for testing
logger.remove()
logger.add(lambda msg: print(msg, end=""), level="INFO")


def paths(documents: List[Document]) -> List[str]:
    return [doc.path for doc in documents]


@pytest.fixture
def project_vault() -> InMemoryVault:
    """A small vault: two tagged notes, one untagged note and an image."""
    return InMemoryVault(
        tags={
            "A.md": ["project"],
            "B.md": ["other"],
            "C.md": [],
        },
        links={"A.md": ["img.png"]},
        files=["img.png"]
    )


class BrokenTagsVault(InMemoryVault):
    """Vault whose tag lookup fails for selected paths."""

    def __init__(self, broken: List[str], **kwargs) -> None:
        super().__init__(**kwargs)
        self.broken = set(broken)

    def get_tags(self, document: Document) -> Optional[List[str]]:
        if document.path in self.broken:
            raise VaultError(f"metadata unavailable for {document.path}")
        return super().get_tags(document)


def test_tagged_note_and_its_link_are_selected(project_vault: InMemoryVault) -> None:
    """A project note comes first, followed by the image it links to."""
    documents = project_vault.list_documents()

    selected = select_documents(documents, ["project"], [], project_vault)

    assert paths(selected) == ["A.md", "img.png"]


def test_ancestor_tag_matches_nested_tag() -> None:
    vault = InMemoryVault(tags={"note.md": ["hello/i/am"]})
    documents = vault.list_documents()

    assert paths(select_documents(documents, ["hello"], [], vault)) == ["note.md"]
    assert paths(select_documents(documents, ["hello/i"], [], vault)) == ["note.md"]
    assert paths(select_documents(documents, ["hello/i/am"], [], vault)) == ["note.md"]


def test_descendant_and_partial_tags_do_not_match() -> None:
    """Matching is by whole path segments, toward ancestors only."""
    vault = InMemoryVault(tags={"note.md": ["hello/i"]})
    documents = vault.list_documents()

    assert select_documents(documents, ["hello/i/am"], [], vault) == []
    assert select_documents(documents, ["hel"], [], vault) == []
    assert select_documents(documents, ["i"], [], vault) == []


def test_untagged_documents_are_never_selected() -> None:
    vault = InMemoryVault(tags={"none.md": None, "empty.md": [], "tagged.md": ["x"]})
    selector = DocumentSelector(vault)

    result = selector.select(vault.list_documents(), SelectionCriteria(include=("x",)))

    assert paths(result.documents) == ["tagged.md"]
    assert result.skipped_untagged == 2


def test_unresolvable_link_is_skipped() -> None:
    vault = InMemoryVault(tags={"A.md": ["project"]}, links={"A.md": ["ghost.png"]})
    selector = DocumentSelector(vault)

    result = selector.select(vault.list_documents(), SelectionCriteria(include=("project",)))

    assert paths(result.documents) == ["A.md"]
    assert result.unresolved == ["ghost.png"]


def test_links_are_followed_one_hop_only() -> None:
    vault = InMemoryVault(
        tags={"A.md": ["project"], "B.md": ["other"], "C.md": ["other"]},
        links={"A.md": ["B.md"], "B.md": ["C.md"]}
    )

    selected = select_documents(vault.list_documents(), ["project"], [], vault)

    assert paths(selected) == ["A.md", "B.md"]


def test_shared_link_target_is_listed_per_linking_document() -> None:
    vault = InMemoryVault(
        tags={"A.md": ["project"], "C.md": ["project/sub"]},
        links={"A.md": ["img.png"], "C.md": ["img.png"]},
        files=["img.png"]
    )

    selected = select_documents(vault.list_documents(), ["project"], [], vault)

    assert paths(selected) == ["A.md", "C.md", "img.png", "img.png"]


def test_document_matching_several_include_tags_is_listed_once() -> None:
    vault = InMemoryVault(tags={"A.md": ["a", "b/c"]})

    selected = select_documents(vault.list_documents(), ["a", "b", "b/c"], [], vault)

    assert paths(selected) == ["A.md"]


def test_matched_documents_keep_input_order() -> None:
    vault = InMemoryVault(tags={"z.md": ["t"], "a.md": ["t"], "m.md": ["t"]})
    documents = [Document("m.md"), Document("z.md"), Document("a.md")]

    assert paths(select_documents(documents, ["t"], [], vault)) == ["m.md", "z.md", "a.md"]


def test_selection_is_repeatable(project_vault: InMemoryVault) -> None:
    documents = project_vault.list_documents()

    first = select_documents(documents, ["project"], [], project_vault)
    second = select_documents(documents, ["project"], [], project_vault)

    assert Counter(paths(first)) == Counter(paths(second))


def test_exclude_is_ignored_by_default() -> None:
    vault = InMemoryVault(tags={"A.md": ["project", "archive"]})

    selected = select_documents(vault.list_documents(), ["project"], ["archive"], vault)

    assert paths(selected) == ["A.md"]


def test_exclude_applies_when_enabled() -> None:
    vault = InMemoryVault(
        tags={"A.md": ["project", "archive/2023"], "B.md": ["project"]},
        links={"A.md": ["img.png"]},
        files=["img.png"]
    )
    criteria = SelectionCriteria(include=("project",), exclude=("archive",), apply_exclude=True)

    result = DocumentSelector(vault).select(vault.list_documents(), criteria)

    assert paths(result.documents) == ["B.md"]
    assert paths(result.excluded) == ["A.md"]


def test_empty_include_selects_nothing(project_vault: InMemoryVault) -> None:
    documents = project_vault.list_documents()

    assert select_documents(documents, [], [], project_vault) == []
    assert select_documents(documents, ["  "], [], project_vault) == []


def test_bare_string_include_is_a_single_tag(project_vault: InMemoryVault) -> None:
    selected = select_documents(project_vault.list_documents(), "project", [], project_vault)

    assert paths(selected) == ["A.md", "img.png"]


def test_failed_tag_lookup_counts_as_untagged() -> None:
    vault = BrokenTagsVault(broken=["A.md"], tags={"A.md": ["project"], "B.md": ["project"]})
    selector = DocumentSelector(vault)

    result = selector.select(vault.list_documents(), SelectionCriteria(include=("project",)))

    assert paths(result.documents) == ["B.md"]
    assert result.skipped_untagged == 1


def test_selection_does_not_mutate_documents(project_vault: InMemoryVault) -> None:
    documents = project_vault.list_documents()
    snapshot = list(documents)

    select_documents(documents, ["project"], [], project_vault)

    assert documents == snapshot


def test_criteria_normalizes_tags() -> None:
    criteria = SelectionCriteria(include=[" project ", "", "area/work"], exclude=["  "])

    assert criteria.include == ("project", "area/work")
    assert criteria.exclude == ()
    assert not criteria.is_empty


def test_criteria_rejects_bare_string() -> None:
    with pytest.raises(TypeError):
        SelectionCriteria(include="project")


def test_criteria_from_query() -> None:
    split = SelectionCriteria.from_query("#project, area/work", "archive")
    single = SelectionCriteria.from_query("project area", split=False)

    assert split.include == ("project", "area/work")
    assert split.exclude == ("archive",)
    assert single.include == ("project area",)
    assert SelectionCriteria.from_query(None).is_empty


def test_link_counts_from_mapping() -> None:
    vault = InMemoryVault(tags={"A.md": ["t"]}, links={"A.md": {"img.png": 3}}, files=["img.png"])

    assert vault.get_outbound_links("A.md") == {"img.png": 3}
    assert vault.get_outbound_links("missing.md") == {}


class StrictVault(InMemoryVault):
    """Vault that raises KeyError for paths it does not know."""

    def get_tags(self, document: Document) -> Optional[List[str]]:
        if document.path not in self._tags:
            raise KeyError(document.path)
        return super().get_tags(document)

    def resolve(self, path: str) -> Optional[Document]:
        if path not in self._known:
            raise KeyError(path)
        return super().resolve(path)


def test_lookup_errors_are_treated_as_missing() -> None:
    vault = StrictVault(tags={"A.md": ["project"]}, links={"A.md": ["ghost.png"]})
    documents = [Document("A.md"), Document("stray.md")]

    result = DocumentSelector(vault).select(documents, SelectionCriteria(include=("project",)))

    assert paths(result.documents) == ["A.md"]
    assert result.unresolved == ["ghost.png"]
    assert result.skipped_untagged == 1


def test_tracked_unresolved_links_are_reported() -> None:
    class TrackingVault(InMemoryVault):
        def get_unresolved_links(self, path: str):
            return {"missing note": 1} if path == "A.md" else {}

    vault = TrackingVault(tags={"A.md": ["project"], "B.md": ["project"]})

    result = DocumentSelector(vault).select(vault.list_documents(), SelectionCriteria(include=("project",)))

    assert result.unresolved == ["missing note"]
