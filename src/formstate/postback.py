"""
Postback state and the decoded HTTP form boundary.

The HTTP layer is a collaborator: it hands over the decoded form fields and
the client identity. Repeated keys are kept as lists; ``get`` joins them with
a comma the way classic form decoders do, ``get_all`` returns them separately.
"""

from dataclasses import dataclass, field
from enum import Enum
from typing import Dict, Iterator, List, Mapping, Optional, Sequence, Union

FormValue = Union[str, Sequence[str]]


class PostBackState(Enum):
    """Postback state fixed once per request for the whole control tree."""
    NO_POSTBACK = "no_postback"
    INVALID_POSTBACK = "invalid_postback"
    VALID_POSTBACK = "valid_postback"


class FormPayload:
    """Read-only view of submitted form fields."""

    def __init__(self, fields: Optional[Mapping[str, FormValue]] = None):
        self._fields: Dict[str, List[str]] = {}
        for key, value in (fields or {}).items():
            if isinstance(value, str):
                self._fields[key] = [value]
            else:
                self._fields[key] = list(value)

    def get(self, key: str) -> Optional[str]:
        """Get a submitted value, or None if the key was not submitted."""
        values = self._fields.get(key)
        if values is None:
            return None
        return ','.join(values)

    def get_all(self, key: str) -> List[str]:
        """Get every value submitted under a key, in submission order."""
        return list(self._fields.get(key, []))

    def __contains__(self, key: object) -> bool:
        return key in self._fields

    def __iter__(self) -> Iterator[str]:
        return iter(self._fields)

    def __len__(self) -> int:
        return len(self._fields)

    def __repr__(self) -> str:
        return f"FormPayload({self._fields!r})"


@dataclass
class FormRequest:
    """One inbound HTTP request as seen by a form.

    client_address, user_name and user_agent form the anti-replay bucket key.
    """
    form: FormPayload = field(default_factory=FormPayload)
    client_address: str = ""
    user_name: str = ""
    user_agent: str = ""
    path_and_query: str = ""

    @classmethod
    def from_mapping(cls, fields: Optional[Mapping[str, FormValue]] = None, **kwargs) -> 'FormRequest':
        """Create a request from a plain mapping of submitted fields."""
        return cls(form=FormPayload(fields), **kwargs)
