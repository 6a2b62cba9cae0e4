"""
Section identity protocol.

Every section of an object collection pane carries a hidden identity token so
that a postback can be matched back to the live object it was rendered for.

TOKEN ALPHABET:
- "{id}"    existing object, id as 32 hex digits
- "R-{id}"  existing object the user asked to remove
- "N"       new object added on the client
- "R-N"     new object added and removed again before it was ever saved
- "P"       new object that was already in the collection when rendered
            (e.g. prepared by the application); it has no persisted id yet,
            so the k-th "P" of a submission claims the k-th not yet persisted
            item of the collection
"""

import logging
import uuid
from dataclasses import dataclass
from enum import Enum
from typing import List, Optional, Sequence

from formstate.model import ObjectCollectionField, PresentableObject, RemovalType

logger = logging.getLogger(__name__)

NEW_TOKEN = "N"
REMOVED_NEW_TOKEN = "R-N"
ROUND_TRIPPED_NEW_TOKEN = "P"
REMOVAL_PREFIX = "R-"


class IdentityKind(Enum):
    EXISTING = "existing"
    REMOVED_EXISTING = "removed_existing"
    NEW_FROM_POSTBACK = "new_from_postback"
    REMOVED_NEW_FROM_POSTBACK = "removed_new_from_postback"
    ROUND_TRIPPED_NEW = "round_tripped_new"


@dataclass(frozen=True)
class IdentityToken:
    """Decoded identity token of one submitted section."""
    kind: IdentityKind
    object_id: Optional[uuid.UUID] = None

    @property
    def is_removal(self) -> bool:
        return self.kind in (IdentityKind.REMOVED_EXISTING, IdentityKind.REMOVED_NEW_FROM_POSTBACK)

    def __str__(self) -> str:
        if self.kind is IdentityKind.NEW_FROM_POSTBACK:
            return NEW_TOKEN
        if self.kind is IdentityKind.REMOVED_NEW_FROM_POSTBACK:
            return REMOVED_NEW_TOKEN
        if self.kind is IdentityKind.ROUND_TRIPPED_NEW:
            return ROUND_TRIPPED_NEW_TOKEN
        if self.kind is IdentityKind.REMOVED_EXISTING:
            return REMOVAL_PREFIX + self.object_id.hex
        return self.object_id.hex


def select_token(values: Sequence[str]) -> Optional[str]:
    """Pick one token out of several submitted under the same key.

    A removal wins, then "N", then the first value.
    """
    if not values:
        return None
    selected = values[0]
    for value in values:
        if value.startswith(REMOVAL_PREFIX):
            return value
        if value == NEW_TOKEN:
            selected = value
    return selected


def decode_token(raw: Optional[str]) -> Optional[IdentityToken]:
    """Decode a raw token; returns None if it is empty or its id cannot be parsed."""
    if not raw:
        return None
    if raw == NEW_TOKEN:
        return IdentityToken(IdentityKind.NEW_FROM_POSTBACK)
    if raw == REMOVED_NEW_TOKEN:
        return IdentityToken(IdentityKind.REMOVED_NEW_FROM_POSTBACK)
    if raw == ROUND_TRIPPED_NEW_TOKEN:
        return IdentityToken(IdentityKind.ROUND_TRIPPED_NEW)
    kind = IdentityKind.EXISTING
    id_part = raw
    if raw.startswith(REMOVAL_PREFIX):
        kind = IdentityKind.REMOVED_EXISTING
        id_part = raw[len(REMOVAL_PREFIX):]
    try:
        object_id = uuid.UUID(id_part)
    except ValueError:
        logger.warning(f"Ignoring section with unparseable identity token {raw!r}")
        return None
    return IdentityToken(kind, object_id)


def encode_token(presentable_object: PresentableObject, is_new_from_postback: bool) -> str:
    """Encode the identity token a section renders for its object."""
    if presentable_object.is_new:
        if presentable_object.is_marked_for_removal:
            return REMOVED_NEW_TOKEN
        if is_new_from_postback:
            return NEW_TOKEN
        return ROUND_TRIPPED_NEW_TOKEN
    if presentable_object.is_marked_for_removal:
        return REMOVAL_PREFIX + presentable_object.id.hex
    return presentable_object.id.hex


@dataclass
class ResolvedIdentity:
    """Live object a token resolved to.

    previous_index is the object's position in the live collection before
    repositioning, or -1 if it must not be repositioned.
    """
    presentable_object: PresentableObject
    previous_index: int = -1
    is_new_from_postback: bool = False


class SectionIdentityResolver:
    """
    Resolves the tokens of one collection scan against the live collection.

    Holds the per-scan state for ordinal "P" matching: a snapshot of the
    collection's not yet persisted items, taken before the scan adds anything.
    """

    def __init__(self, collection: ObjectCollectionField, allows_adding: bool = True, allows_removing: bool = True):
        self.collection = collection
        self.allows_adding = allows_adding
        self.allows_removing = allows_removing
        self._prepared_items: List[PresentableObject] = collection.new_items()
        self._claimed_prepared_items = 0

    def resolve(self, token: IdentityToken) -> Optional[ResolvedIdentity]:
        """Resolve a token, mutating the collection for additions and removals."""
        kind = token.kind
        if kind is IdentityKind.NEW_FROM_POSTBACK:
            if not self.allows_adding:
                return None
            new_item = self.collection.new_item()
            previous_index = len(self.collection)
            self.collection.add(new_item)
            logger.debug(f"Added new item {new_item.id.hex} to collection {self.collection.key!r}")
            return ResolvedIdentity(new_item, previous_index, is_new_from_postback=True)
        if kind is IdentityKind.REMOVED_NEW_FROM_POSTBACK:
            if not (self.allows_adding and self.allows_removing):
                return None
            # never added, so never repositioned
            new_item = self.collection.new_item()
            new_item.removal = RemovalType.CASCADE
            return ResolvedIdentity(new_item, -1, is_new_from_postback=True)
        if kind is IdentityKind.ROUND_TRIPPED_NEW:
            return self._claim_prepared_item()
        return self._resolve_existing(token)

    def _claim_prepared_item(self) -> Optional[ResolvedIdentity]:
        if self._claimed_prepared_items >= len(self._prepared_items):
            logger.debug(f"No unclaimed new item left in collection {self.collection.key!r}")
            return None
        prepared_item = self._prepared_items[self._claimed_prepared_items]
        self._claimed_prepared_items += 1
        return ResolvedIdentity(prepared_item, self.collection.index_of(prepared_item.id))

    def _resolve_existing(self, token: IdentityToken) -> Optional[ResolvedIdentity]:
        index = self.collection.index_of(token.object_id)
        if index < 0:
            logger.debug(f"Object {token.object_id.hex} is not contained in collection {self.collection.key!r}")
            return None
        item = self.collection.items[index]
        if token.is_removal and self.allows_removing:
            item.removal = RemovalType.CASCADE
            logger.debug(f"Marked object {item.id.hex} for removal")
            return ResolvedIdentity(item, -1)
        return ResolvedIdentity(item, index)
