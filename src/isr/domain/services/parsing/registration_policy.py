#!/usr/bin/env python3

"""Deduplication and merge rules applied while registering definitions.

The same header-defined type is emitted by every compilation unit that
includes it, and distinct types may share a name. Registration is therefore
two steps:

1. ``DeclarationCache`` remembers declaration sites (file, line, column)
   that were already processed, so repeated copies are skipped.
2. ``MoreFieldsWins`` decides what happens when a name is already taken:
   the definition with strictly more fields replaces the stored one, so the
   outcome does not depend on ingestion order.
"""

from dataclasses import dataclass
from typing import Protocol, TypeVar

from ....infrastructure.logging import get_logger

logger = get_logger(__name__)


@dataclass(frozen=True)
class DeclarationSite:
    file: str
    line: int
    column: int

    def __str__(self) -> str:
        return f"{self.file}:{self.line}:{self.column}"


class DeclarationCache:
    """Seen-set of declaration sites."""

    def __init__(self) -> None:
        self._seen: set[DeclarationSite] = set()

    def __len__(self) -> int:
        return len(self._seen)

    def __contains__(self, site: DeclarationSite) -> bool:
        return site in self._seen

    def claim(self, site: DeclarationSite) -> bool:
        """Record ``site``; return False if it had already been claimed."""
        if site in self._seen:
            return False
        self._seen.add(site)
        return True


class _HasFields(Protocol):
    fields: dict


D = TypeVar("D", bound=_HasFields)


class MoreFieldsWins:
    """Merge rule for name collisions."""

    def merge(self, collection: dict[str, D], name: str, definition: D, label: str = "type") -> bool:
        """
        Insert ``definition`` under ``name`` subject to the merge rule.

        Args:
            collection: Enum or struct namespace being filled
            name: Definition name
            definition: New definition
            label: Kind of definition, for log messages

        Returns:
            True if the collection now holds ``definition``
        """
        existing = collection.get(name)
        if existing is None:
            collection[name] = definition
            return True

        if len(definition.fields) > len(existing.fields):
            logger.debug(
                f"Duplicate {label} {name}: replacing definition with "
                f"{len(existing.fields)} fields by one with {len(definition.fields)}"
            )
            collection[name] = definition
            return True

        logger.debug(
            f"Duplicate {label} {name}: keeping definition with {len(existing.fields)} fields "
            f"(new one has {len(definition.fields)})"
        )
        return False


class RegistrationPolicy:
    """Seen-set plus merge rule, shared by one ingestion run."""

    def __init__(self) -> None:
        self.declarations = DeclarationCache()
        self.merge_rule = MoreFieldsWins()

    def should_process(self, site: DeclarationSite | None, name: str) -> bool:
        """
        Decide whether a definition needs to be processed at all.

        Definitions without a complete declaration site cannot be
        deduplicated and are always processed.
        """
        if site is None:
            logger.warning(f"{name}: incomplete declaration site, processing without deduplication")
            return True
        return self.declarations.claim(site)

    def register(self, collection: dict[str, D], name: str, definition: D, label: str = "type") -> bool:
        return self.merge_rule.merge(collection, name, definition, label)
