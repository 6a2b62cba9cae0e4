"""
Collaborator protocols.

The engine does not know how objects are stored or how permissions are
enforced. It talks to two small collaborators instead:

- FieldRepository: looks up the presentable field a view field is bound to,
  once under the current user's permissions and once ignoring them, so that a
  field hidden by permissions can be told apart from a field that does not
  exist at all.
- ReferenceResolver: turns a submitted object id into a live object.
"""

from typing import TYPE_CHECKING, Optional, Protocol

if TYPE_CHECKING:
    from formstate.model import PresentableField, PresentableObject


class FieldRepository(Protocol):
    """Capability-checked field lookup."""

    def find_field(self, presentable_object: 'PresentableObject', key: str) -> Optional['PresentableField']:
        """Find a field visible to the current user, or None."""
        ...

    def find_field_ignoring_permissions(self, presentable_object: 'PresentableObject',
                                        key: str) -> Optional['PresentableField']:
        """Find a field regardless of permissions, or None if it does not exist."""
        ...


class ReferenceResolver(Protocol):
    """Resolves submitted object ids (uuid hex) to live objects."""

    def resolve(self, object_id: str) -> Optional['PresentableObject']:
        ...


class ObjectFieldRepository:
    """FieldRepository without permission checks: every existing field is visible."""

    def find_field(self, presentable_object: 'PresentableObject', key: str) -> Optional['PresentableField']:
        return presentable_object.find_field(key)

    def find_field_ignoring_permissions(self, presentable_object: 'PresentableObject',
                                        key: str) -> Optional['PresentableField']:
        return presentable_object.find_field(key)
