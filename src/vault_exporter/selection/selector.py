"""Tag-based document selection with one-hop link closure."""

from __future__ import annotations

from dataclasses import dataclass, field
from typing import Iterable, List, Optional, Sequence, Set, Tuple

from loguru import logger

from ..vault.index import VaultError, VaultIndex
from ..vault.models import Document
from .tags import expand_tags, parse_tag_query


@dataclass(frozen=True)
class SelectionCriteria:
    """Tags to select by, fixed for the duration of one export."""
    include: Tuple[str, ...] = ()
    exclude: Tuple[str, ...] = ()

    # Exclude entries only remove matches when this is set
    apply_exclude: bool = False

    def __post_init__(self) -> None:
        """Normalize tag lists to tuples of trimmed, non-empty strings."""
        for name in ('include', 'exclude'):
            values = getattr(self, name)
            if isinstance(values, str):
                raise TypeError(f"{name} must be a sequence of tags, not a string")
            cleaned = tuple(str(tag).strip() for tag in values if str(tag).strip())
            object.__setattr__(self, name, cleaned)

    @classmethod
    def from_query(
        cls,
        include_text: Optional[str],
        exclude_text: Optional[str] = None,
        split: bool = True,
        apply_exclude: bool = False
    ) -> SelectionCriteria:
        """Build criteria from free-text include/exclude queries.

        Args:
            include_text: Tags to include, e.g. ``"project, area/work"``.
            exclude_text: Tags to exclude.
            split: Split queries on commas and whitespace instead of treating
                each query as a single tag.
            apply_exclude: Whether exclude tags remove matched documents.

        Returns:
            SelectionCriteria instance.
        """
        return cls(
            include=parse_tag_query(include_text, split=split),
            exclude=parse_tag_query(exclude_text, split=split),
            apply_exclude=apply_exclude
        )

    @property
    def is_empty(self) -> bool:
        return not self.include


@dataclass
class SelectionResult:
    """Outcome of a selection run."""
    documents: List[Document] = field(default_factory=lambda: [])
    matched: List[Document] = field(default_factory=lambda: [])
    linked: List[Document] = field(default_factory=lambda: [])
    excluded: List[Document] = field(default_factory=lambda: [])
    unresolved: List[str] = field(default_factory=lambda: [])
    skipped_untagged: int = 0

    @property
    def is_empty(self) -> bool:
        return not self.documents


class DocumentSelector:
    """Selects documents by hierarchical tag and pulls in what they link to."""

    def __init__(self, vault: VaultIndex) -> None:
        """Initialize the selector.

        Args:
            vault: Source of tags, outbound links and path resolution.
        """
        self.vault: VaultIndex = vault
        logger.debug("Document selector initialized")

    def select(
        self,
        documents: Sequence[Document],
        criteria: SelectionCriteria
    ) -> SelectionResult:
        """Select documents matching the criteria, then add their link targets.

        Args:
            documents: Candidate documents.
            criteria: Include/exclude tags for this run.

        Returns:
            SelectionResult whose ``documents`` holds the matched documents
            followed by every resolvable document they link to.
        """
        logger.info(f"Starting document selection from {len(documents)} candidates")
        result = SelectionResult()

        if criteria.is_empty:
            logger.warning("No include tags given, nothing to select")
            return result

        include: Set[str] = set(criteria.include)
        exclude: Set[str] = set(criteria.exclude)

        for document in documents:
            literal_tags = self._get_tags(document)
            if not literal_tags:
                result.skipped_untagged += 1
                continue

            tag_set: Set[str] = set(expand_tags(literal_tags))
            if include.isdisjoint(tag_set):
                continue

            if criteria.apply_exclude and not exclude.isdisjoint(tag_set):
                logger.debug(f"Excluding {document.path}: carries an excluded tag")
                result.excluded.append(document)
                continue

            result.matched.append(document)

        result.documents.extend(result.matched)

        # One hop only: targets of linked documents are not followed
        for document in result.matched:
            for target_path in self._get_outbound_links(document):
                target = self._resolve(target_path)
                if target is None:
                    logger.debug(f"Skipping unresolvable link target {target_path} from {document.path}")
                    result.unresolved.append(target_path)
                    continue
                result.linked.append(target)
                result.documents.append(target)
            result.unresolved.extend(self._get_unresolved_links(document))

        logger.info(
            "Selected {matched} tagged documents and {linked} linked resources",
            matched=len(result.matched),
            linked=len(result.linked)
        )
        return result

    def _get_tags(self, document: Document) -> Optional[List[str]]:
        """Literal tags for a document; lookup failures count as no tags."""
        try:
            return self.vault.get_tags(document)
        except (VaultError, OSError, LookupError) as e:
            logger.debug(f"Treating {document.path} as untagged: {e}")
            return None

    def _get_outbound_links(self, document: Document) -> List[str]:
        try:
            return list(self.vault.get_outbound_links(document.path))
        except (VaultError, OSError, LookupError) as e:
            logger.debug(f"No link information for {document.path}: {e}")
            return []

    def _get_unresolved_links(self, document: Document) -> List[str]:
        """Targets the vault already failed to resolve, for backends that track them."""
        lookup = getattr(self.vault, "get_unresolved_links", None)
        if lookup is None:
            return []
        try:
            return list(lookup(document.path))
        except (VaultError, OSError, LookupError) as e:
            logger.debug(f"No unresolved link information for {document.path}: {e}")
            return []

    def _resolve(self, path: str) -> Optional[Document]:
        try:
            return self.vault.resolve(path)
        except (VaultError, OSError, LookupError) as e:
            logger.debug(f"Could not resolve {path}: {e}")
            return None


def select_documents(
    documents: Sequence[Document],
    include: Iterable[str],
    exclude: Iterable[str],
    vault: VaultIndex,
    apply_exclude: bool = False
) -> List[Document]:
    """Select documents tagged with any include tag plus their link targets.

    Args:
        documents: Candidate documents.
        include: Tags to match; ancestors of a document's tags match too.
        exclude: Tags to exclude. Ignored unless ``apply_exclude`` is set.
        vault: Tag lookup, link index and resolver.
        apply_exclude: Drop matched documents carrying an exclude tag.

    Returns:
        Matched documents followed by resolved link targets, duplicates kept.
    """
    # A bare string is a single tag, not a sequence of characters
    if isinstance(include, str):
        include = [include]
    if isinstance(exclude, str):
        exclude = [exclude]

    criteria = SelectionCriteria(
        include=tuple(include),
        exclude=tuple(exclude),
        apply_exclude=apply_exclude
    )
    return DocumentSelector(vault).select(documents, criteria).documents
