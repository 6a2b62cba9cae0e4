"""
Presentable object graph bound into forms.

A PresentableObject is a bag of named presentable fields. Element fields hold
one value, collection fields hold an ordered list of values, and object
collection fields hold an ordered list of child PresentableObjects that forms
render as repeatable sections.

Values cross the form boundary as strings: element fields parse submitted
strings with ``try_set_value_as_string`` and report failure instead of raising.
"""

import logging
import uuid
from datetime import date
from enum import Enum
from typing import Any, Callable, ClassVar, Dict, Iterable, Iterator, List, Optional

from formstate.exceptions import ConfigurationError
from formstate.protocols import ReferenceResolver

logger = logging.getLogger(__name__)


class RemovalType(Enum):
    """Whether an object is to be removed when the graph is persisted."""
    NONE = "none"
    CASCADE = "cascade"


def split_key_chain(key: str) -> List[str]:
    """Split a dotted key into its chain ("address.city" -> ["address", "city"])."""
    return [part for part in key.split('.') if part]


class PresentableField:
    """A named field bound to one property of one PresentableObject."""

    is_for_single_element: ClassVar[bool] = True

    def __init__(self, key: str, is_read_only: bool = False):
        self.key = key
        self.is_read_only = is_read_only
        self.parent: Optional['PresentableObject'] = None

    def __repr__(self) -> str:
        return f"{type(self).__name__}(key={self.key!r})"


class PresentableObject:
    """
    Object graph node that forms render and reconcile.

    Every object carries a 128-bit id from construction on, also while it is
    new. ``is_new`` stays True until the persistence layer stores the object;
    ``removal`` is set by the section identity protocol when a submitted
    section asks for the object to be removed.
    """

    def __init__(self, object_id: Optional[uuid.UUID] = None, is_new: bool = True):
        self.id: uuid.UUID = object_id if object_id is not None else uuid.uuid4()
        self.is_new = is_new
        self.removal = RemovalType.NONE
        self._fields: Dict[str, PresentableField] = {}

    @property
    def keys(self) -> List[str]:
        return list(self._fields)

    @property
    def is_marked_for_removal(self) -> bool:
        return self.removal is not RemovalType.NONE

    def add_field(self, presentable_field: PresentableField) -> PresentableField:
        """Add a field; keys must be unique within the object."""
        if presentable_field.key in self._fields:
            raise ValueError(
                f"Key {presentable_field.key!r} is not unique for presentable object "
                f"of type {type(self).__name__}."
            )
        presentable_field.parent = self
        self._fields[presentable_field.key] = presentable_field
        return presentable_field

    def find_field(self, key: str) -> Optional[PresentableField]:
        """Find a field by key or dotted key chain through nested objects."""
        chain = split_key_chain(key)
        if not chain:
            return None
        current: Optional[PresentableObject] = self
        for position, part in enumerate(chain):
            if current is None:
                return None
            found = current._fields.get(part)
            if found is None or position == len(chain) - 1:
                return found
            current = found.value if isinstance(found, ObjectField) else None
        return None

    def __getitem__(self, key: str) -> PresentableField:
        found = self.find_field(key)
        if found is None:
            raise KeyError(key)
        return found

    def __iter__(self) -> Iterator[PresentableField]:
        return iter(self._fields.values())

    def __repr__(self) -> str:
        return f"{type(self).__name__}(id={self.id.hex}, is_new={self.is_new})"


# ==================== ELEMENT FIELDS ====================

class ElementField(PresentableField):
    """Field holding a single value.

    Subclasses implement ``_parse`` (raise ValueError on bad input) and
    ``_format``. An empty string always parses to None.
    """

    def __init__(self, key: str, value: Any = None, is_read_only: bool = False):
        super().__init__(key, is_read_only)
        self.value = value

    @property
    def value_as_string(self) -> str:
        if self.value is None:
            return ""
        return self._format(self.value)

    def try_set_value_as_string(self, value: str) -> bool:
        """Parse and assign a submitted string; return False if it cannot be parsed."""
        if value == "":
            self.value = None
            return True
        try:
            self.value = self._parse(value)
        except ValueError:
            logger.debug(f"Cannot parse {value!r} for field {self.key!r}")
            return False
        return True

    def _parse(self, value: str) -> Any:
        raise NotImplementedError

    def _format(self, value: Any) -> str:
        return str(value)


class StringField(ElementField):

    def _parse(self, value: str) -> str:
        return value


class IntField(ElementField):

    def _parse(self, value: str) -> int:
        return int(value)


class FloatField(ElementField):

    def _parse(self, value: str) -> float:
        return float(value)

    def _format(self, value: float) -> str:
        return repr(float(value))


class BoolField(ElementField):
    """Boolean field; strings are "True" and "False" as rendered by radio buttons."""

    def _parse(self, value: str) -> bool:
        lowered = value.lower()
        if lowered == "true":
            return True
        if lowered == "false":
            return False
        raise ValueError(value)

    def _format(self, value: bool) -> str:
        return "True" if value else "False"


class DateField(ElementField):
    """Date field in ISO format (YYYY-MM-DD)."""

    def _parse(self, value: str) -> date:
        return date.fromisoformat(value)

    def _format(self, value: date) -> str:
        return value.isoformat()


class ReferenceField(ElementField):
    """
    Field referencing another PresentableObject by id.

    Submitted ids are resolved through a ReferenceResolver. An id that does not
    resolve (e.g. the target was deleted) leaves the value None while the
    assignment itself succeeds; the field control turns that into a
    validation error rather than silently dropping the reference.
    """

    def __init__(self, key: str, value: Optional[PresentableObject] = None, is_read_only: bool = False,
                 resolver: Optional[ReferenceResolver] = None):
        super().__init__(key, value, is_read_only)
        self.resolver = resolver

    def _format(self, value: PresentableObject) -> str:
        return value.id.hex

    def try_set_value_as_string(self, value: str) -> bool:
        if value == "":
            self.value = None
            return True
        self.value = _resolve_reference(self.resolver, self.key, value)
        return True


class ObjectField(ElementField):
    """Field holding a nested PresentableObject; panes with a key render it."""

    def _format(self, value: PresentableObject) -> str:
        return value.id.hex

    def try_set_value_as_string(self, value: str) -> bool:
        return False


def _resolve_reference(resolver: Optional[ReferenceResolver], key: str, value: str) -> Optional[PresentableObject]:
    if resolver is None:
        raise ConfigurationError(f"Reference field {key!r} has no reference resolver.")
    resolved = resolver.resolve(value)
    if resolved is None:
        logger.debug(f"Reference {value!r} for field {key!r} cannot be resolved")
    return resolved


# ==================== COLLECTION FIELDS ====================

class CollectionField(PresentableField):
    """Field holding an ordered list of values.

    Parsing and formatting of single values is borrowed from the element
    field type named by ``element_type``.
    """

    is_for_single_element: ClassVar[bool] = False
    element_type: ClassVar[type] = StringField

    def __init__(self, key: str, values: Optional[Iterable[Any]] = None, is_read_only: bool = False):
        super().__init__(key, is_read_only)
        self.values: List[Any] = list(values or [])
        self._element = self.element_type(key)

    def __len__(self) -> int:
        return len(self.values)

    def values_as_string(self) -> List[str]:
        return ["" if value is None else self._element._format(value) for value in self.values]

    def clear(self) -> None:
        self.values.clear()

    def add(self, value: Any) -> None:
        self.values.append(value)

    def try_add_string(self, value: str) -> bool:
        """Parse and append a submitted string; return False if it cannot be parsed."""
        if not self._element.try_set_value_as_string(value):
            return False
        self.values.append(self._element.value)
        return True


class StringCollectionField(CollectionField):
    element_type = StringField


class IntCollectionField(CollectionField):
    element_type = IntField


class ReferenceCollectionField(CollectionField):
    """Collection of references; unresolvable ids are kept as None entries."""

    element_type = ReferenceField

    def __init__(self, key: str, values: Optional[Iterable[PresentableObject]] = None, is_read_only: bool = False,
                 resolver: Optional[ReferenceResolver] = None):
        super().__init__(key, values, is_read_only)
        self.resolver = resolver

    def try_add_string(self, value: str) -> bool:
        self.values.append(_resolve_reference(self.resolver, self.key, value))
        return True


class ObjectCollectionField(PresentableField):
    """
    Ordered collection of child objects rendered as repeatable sections.

    Ordering is significant. An object id may appear at most once.
    """

    is_for_single_element: ClassVar[bool] = False

    def __init__(self, key: str, item_factory: Callable[[], PresentableObject],
                 items: Optional[Iterable[PresentableObject]] = None, is_read_only: bool = False):
        super().__init__(key, is_read_only)
        self.item_factory = item_factory
        self.items: List[PresentableObject] = []
        for item in items or []:
            self.add(item)

    def __len__(self) -> int:
        return len(self.items)

    def __iter__(self) -> Iterator[PresentableObject]:
        return iter(self.items)

    def new_item(self) -> PresentableObject:
        """Create a new, not yet persisted item without adding it."""
        return self.item_factory()

    def add(self, item: PresentableObject) -> None:
        if any(existing.id == item.id for existing in self.items):
            raise ValueError(f"Object {item.id.hex} is already contained in collection {self.key!r}.")
        self.items.append(item)

    def remove(self, item: PresentableObject) -> None:
        self.items.remove(item)

    def index_of(self, object_id: uuid.UUID) -> int:
        """Position of the item with the given id, or -1."""
        for index, item in enumerate(self.items):
            if item.id == object_id:
                return index
        return -1

    def swap(self, first_index: int, second_index: int) -> None:
        self.items[first_index], self.items[second_index] = self.items[second_index], self.items[first_index]

    def sort_objects(self, key: Callable[[PresentableObject], Any]) -> None:
        """Sort items in place; the sort is stable."""
        self.items.sort(key=key)

    def new_items(self) -> List[PresentableObject]:
        """Items not yet persisted, in collection order."""
        return [item for item in self.items if item.is_new]

    def values_as_string(self) -> List[str]:
        return [item.id.hex for item in self.items]
