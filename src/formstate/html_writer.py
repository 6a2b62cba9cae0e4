"""
Markup emission.

HtmlWriter collects markup into a buffer. Text and attribute values are
always escaped; tag names and attribute names are trusted.
"""

from html import escape
from typing import Iterable, List, Mapping, Optional, Tuple, Union

Attributes = Union[Mapping[str, str], Iterable[Tuple[str, str]]]


class HtmlWriter:
    """Append-only HTML buffer."""

    def __init__(self):
        self._parts: List[str] = []

    def append(self, text: str) -> 'HtmlWriter':
        """Append raw markup."""
        self._parts.append(text)
        return self

    def append_html_encoded(self, text: Optional[str]) -> 'HtmlWriter':
        if text:
            self._parts.append(escape(text, quote=False))
        return self

    def append_opening_tag(self, tag_name: str, attributes: Optional[Attributes] = None,
                           css_class: Optional[str] = None) -> 'HtmlWriter':
        self._parts.append(f"<{tag_name}{self._format_attributes(attributes, css_class)}>")
        return self

    def append_closing_tag(self, tag_name: str) -> 'HtmlWriter':
        self._parts.append(f"</{tag_name}>")
        return self

    def append_self_closing_tag(self, tag_name: str, attributes: Optional[Attributes] = None,
                                css_class: Optional[str] = None) -> 'HtmlWriter':
        self._parts.append(f"<{tag_name}{self._format_attributes(attributes, css_class)} />")
        return self

    def append_hidden_input_tag(self, name: str, value: str) -> 'HtmlWriter':
        return self.append_self_closing_tag("input", [("name", name), ("type", "hidden"), ("value", value)])

    @staticmethod
    def _format_attributes(attributes: Optional[Attributes], css_class: Optional[str]) -> str:
        items = list(attributes.items()) if isinstance(attributes, Mapping) else list(attributes or [])
        if css_class:
            items.insert(0, ("class", css_class))
        return "".join(f' {name}="{escape(value, quote=True)}"' for name, value in items)

    def to_html(self) -> str:
        return "".join(self._parts)

    def __str__(self) -> str:
        return self.to_html()
