"""
Collection reconciler.

Reads the submitted sections of one object collection and walks the live
collection into the submitted state.

SCAN:
Tokens are read from ``{name}_0``, ``{name}_1``, ... up to the first absent
or empty key. Each resolved section may carry a sort value in
``{name}_{i}::``. A resolved object found further back in the collection
than its scan index is swapped forward, so the collection ends up in
rendered order after a single pass.

FINAL SORT:
If any sort values were submitted, items with a sort value move to the front
in ascending order; the others keep their relative order after them.

UNSCANNED:
Live items no submitted token matched (for example items appended out of
band, or beyond a gap in the indices) are kept and appended as unscanned
sections. They are never dropped.
"""

import logging
import uuid
from dataclasses import dataclass
from typing import Dict, List, Optional, Set

from formstate.model import ObjectCollectionField, PresentableObject
from formstate.postback import FormPayload, PostBackState
from formstate.section_identity import SectionIdentityResolver, decode_token, select_token

logger = logging.getLogger(__name__)


@dataclass
class ResolvedSection:
    """One section to render for a collection item."""
    presentable_object: PresentableObject
    index: int
    is_new_from_postback: bool = False
    is_scanned: bool = True
    sort_value: Optional[int] = None

    @property
    def suffix(self) -> str:
        return f"_{self.index}"


class CollectionReconciler:
    """Reconciles one ObjectCollectionField against submitted sections."""

    def __init__(self, collection: ObjectCollectionField, allows_adding: bool = True, allows_removing: bool = True):
        self.collection = collection
        self.allows_adding = allows_adding
        self.allows_removing = allows_removing

    def reconcile(self, payload: FormPayload, token_name: str,
                  postback_state: PostBackState = PostBackState.VALID_POSTBACK) -> List[ResolvedSection]:
        """
        Reconcile the collection and list the sections to render.

        Args:
            payload: Submitted form fields
            token_name: Name of the section token inputs without the "_{i}" index
            postback_state: Only a valid postback is scanned

        Returns:
            Scanned sections in scan order, followed by unscanned sections
        """
        sections: List[ResolvedSection] = []
        if postback_state is PostBackState.VALID_POSTBACK:
            sections.extend(self._scan(payload, token_name))
        self._append_unscanned(sections)
        return sections

    def _scan(self, payload: FormPayload, token_name: str) -> List[ResolvedSection]:
        resolver = SectionIdentityResolver(self.collection, self.allows_adding, self.allows_removing)
        sections: List[ResolvedSection] = []
        seen: Set[uuid.UUID] = set()
        sort_values: Dict[uuid.UUID, int] = {}
        index = 0
        while True:
            raw = payload.get(f"{token_name}_{index}")
            if not raw:
                break
            token = decode_token(select_token(raw.split(',')))
            resolved = resolver.resolve(token) if token is not None else None
            if resolved is not None and resolved.presentable_object.id not in seen:
                presentable_object = resolved.presentable_object
                seen.add(presentable_object.id)
                sort_value = self._parse_sort_value(payload.get(f"{token_name}_{index}::"))
                if sort_value is not None:
                    sort_values[presentable_object.id] = sort_value
                sections.append(ResolvedSection(presentable_object, index, resolved.is_new_from_postback,
                                                sort_value=sort_value))
                if index < resolved.previous_index:
                    logger.debug(f"Swapping positions {index} and {resolved.previous_index} "
                                 f"of collection {self.collection.key!r}")
                    self.collection.swap(index, resolved.previous_index)
            index += 1
        if payload.get(f"{token_name}_{index + 1}"):
            logger.warning(f"Section scan of {token_name!r} stopped at gap at index {index}")
        if sort_values:
            self._sort(sort_values)
        return sections

    @staticmethod
    def _parse_sort_value(raw: Optional[str]) -> Optional[int]:
        if not raw:
            return None
        try:
            return int(raw)
        except ValueError:
            return None

    def _sort(self, sort_values: Dict[uuid.UUID, int]) -> None:
        def sort_key(item: PresentableObject):
            if item.id in sort_values:
                return 0, sort_values[item.id]
            return 1, 0
        self.collection.sort_objects(sort_key)

    def _append_unscanned(self, sections: List[ResolvedSection]) -> None:
        seen = {section.presentable_object.id for section in sections}
        next_index = sections[-1].index + 1 if sections else 0
        for item in self.collection:
            if item.id not in seen:
                sections.append(ResolvedSection(item, next_index, is_scanned=False))
                next_index += 1
