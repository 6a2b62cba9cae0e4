"""
Tri-state validity.

Every node of a form (field, section, pane, form) carries a validity of
True, False or None, where None means "unknown": no valid postback happened
for it. Aggregation is a pure fold: None dominates, then False.
"""

from typing import Iterable, Optional

Validity = Optional[bool]


def aggregate_validity(values: Iterable[Validity]) -> Validity:
    """Fold child validities into the validity of their parent.

    Args:
        values: Validities of the live children; children whose objects are
            marked for removal must already be left out.

    Returns:
        None if any child is None, False if any child is False, else True.
        An empty iterable is True.
    """
    result: Validity = True
    for value in values:
        if value is None:
            return None
        if value is False:
            result = False
    return result
