"""
Field controls: postback intake and rendering of single fields.

A field control is created fresh on every request for one presentable field
and its view field. It snapshots the field's string value at construction;
that snapshot is what the rendered echo hash is computed from.

RECONCILIATION (valid postbacks only):
1. Read-only fields count as included and are never written.
2. An absent key leaves the field untouched and its validity unknown.
3. A submitted value equal to the live value is not written.
4. A submitted value that differs from the live value but matches the
   submitted echo hash is an unedited echo; the live value wins.
5. Otherwise the value is parsed into the field; a parse failure records the
   view field's default error message.

Validation runs in a second phase (``set_has_valid_value``) after every
control of the form has reconciled.
"""

import logging
import re
from typing import List, Optional

from formstate.config import FormConfig
from formstate.echo_hash import hash_of, is_unedited_echo
from formstate.exceptions import MissingFieldError
from formstate.html_writer import HtmlWriter
from formstate.model import CollectionField, ElementField, PresentableObject
from formstate.postback import FormPayload, PostBackState
from formstate.validity import Validity
from formstate.view import (
    Mandatoriness,
    ValidityCheck,
    ValueSeparator,
    ViewFieldForBool,
    ViewFieldForCollection,
    ViewFieldForEditableValue,
    ViewFieldForElement,
)

logger = logging.getLogger(__name__)

_MULTIPLE_SPACES = re.compile(r" {2,}")

HASH_SUFFIX = "::"


def remove_unnecessary_white_space(value: str) -> str:
    """Trim and collapse runs of spaces into one."""
    return _MULTIPLE_SPACES.sub(" ", value.strip())


def client_field_id_for(key: str, prefix: str = "", suffix: str = "") -> str:
    """Build the input name of a field: prefix + "." + key + suffix."""
    client_field_id = f"{prefix}." if prefix else ""
    return client_field_id + key + suffix


class FieldControl:
    """Base of all field controls."""

    def __init__(self, presentable_field, view_field: ViewFieldForEditableValue, config: FormConfig,
                 client_field_id_prefix: str = "", client_field_id_suffix: str = "",
                 postback_state: PostBackState = PostBackState.NO_POSTBACK,
                 validity_check: ValidityCheck = ValidityCheck.TRANSITIONAL,
                 topmost_parent: Optional[PresentableObject] = None):
        self.presentable_field = presentable_field
        self.view_field = view_field
        self.config = config
        self.client_field_id = client_field_id_for(view_field.key, client_field_id_prefix, client_field_id_suffix)
        self.postback_state = postback_state
        self.validity_check = validity_check
        self.topmost_parent = topmost_parent
        self.is_read_only = view_field.is_read_only or presentable_field.is_read_only
        self.error_message: Optional[str] = None
        self.is_included_in_postback = False

    @property
    def previous_value(self) -> str:
        raise NotImplementedError

    @property
    def has_valid_value(self) -> Validity:
        if not self.is_included_in_postback:
            return None
        return self.error_message is None

    def clean_postback_value(self, value: str) -> str:
        return remove_unnecessary_white_space(value)

    def create_child_controls(self, payload: FormPayload) -> None:
        raise NotImplementedError

    def set_has_valid_value(self) -> None:
        """Validate the reconciled value; raises MissingFieldError in strict mode."""
        if (not self.is_included_in_postback
                and self.postback_state is PostBackState.VALID_POSTBACK
                and self.config.throw_on_missing_fields):
            parent = self.presentable_field.parent
            if parent is None or not parent.is_new:
                raise MissingFieldError(self.client_field_id)
        if self.is_included_in_postback and not self.is_read_only and self.error_message is None:
            self.error_message = self._validate()

    def _validate(self) -> Optional[str]:
        raise NotImplementedError

    # ==================== RENDERING ====================

    def render(self, html: HtmlWriter) -> None:
        html.append_opening_tag("div", css_class="field")
        self.render_label(html)
        if self.is_read_only:
            html.append_opening_tag("p")
            html.append_html_encoded(self.read_only_value())
            html.append_closing_tag("p")
        else:
            self.render_editable_value(html)
            self.render_hashed_value(html)
            if self.error_message:
                html.append_opening_tag("span", css_class="fielderror")
                html.append_html_encoded(self.error_message)
                html.append_closing_tag("span")
        html.append_closing_tag("div")

    def render_label(self, html: HtmlWriter) -> None:
        attributes = [] if self.is_read_only else [("for", self.client_field_id)]
        html.append_opening_tag("label", attributes)
        html.append_html_encoded(self.view_field.title)
        if not self.is_read_only and self.view_field.mandatoriness is not Mandatoriness.OPTIONAL:
            html.append_opening_tag("span", css_class=self.view_field.mandatoriness.value)
            html.append("*")
            html.append_closing_tag("span")
        html.append_closing_tag("label")

    def render_hashed_value(self, html: HtmlWriter) -> None:
        hashed_value = hash_of(self.previous_value)
        if hashed_value:
            html.append_hidden_input_tag(self.client_field_id + HASH_SUFFIX, hashed_value)

    def render_editable_value(self, html: HtmlWriter) -> None:
        raise NotImplementedError

    def read_only_value(self) -> str:
        raise NotImplementedError

    def __repr__(self) -> str:
        return f"{type(self).__name__}({self.client_field_id!r})"


# ==================== ELEMENT FIELDS ====================

class ElementFieldControl(FieldControl):
    """Control for a field holding a single value, rendered as a text input."""

    def __init__(self, presentable_field: ElementField, view_field: ViewFieldForElement, config: FormConfig, **kwargs):
        super().__init__(presentable_field, view_field, config, **kwargs)
        self._previous_value = presentable_field.value_as_string
        self.postback_value: Optional[str] = None

    @property
    def previous_value(self) -> str:
        return self._previous_value

    @property
    def editable_value(self) -> Optional[str]:
        if self.postback_state is PostBackState.VALID_POSTBACK and self.is_included_in_postback:
            return self.postback_value
        return self.presentable_field.value_as_string

    def create_child_controls(self, payload: FormPayload) -> None:
        self.error_message = None
        self.is_included_in_postback = False
        if self.postback_state is not PostBackState.VALID_POSTBACK:
            return
        if self.is_read_only:
            self.is_included_in_postback = True
            return
        submitted_value = payload.get(self.client_field_id)
        if submitted_value is None:
            return
        self.is_included_in_postback = True
        self.postback_value = self.clean_postback_value(submitted_value)
        live_value = self.presentable_field.value_as_string
        if live_value == self.postback_value:
            return
        if is_unedited_echo(self.postback_value, payload.get(self.client_field_id + HASH_SUFFIX)):
            logger.debug(f"Value of {self.client_field_id!r} is an unedited echo, keeping live value")
            self.postback_value = live_value
        elif not self.presentable_field.try_set_value_as_string(self.postback_value):
            self.error_message = self.view_field.default_error_message()

    def _validate(self) -> Optional[str]:
        # optional references must not silently drop unresolvable input
        if self.presentable_field.value is None and self.postback_value:
            return self.view_field.default_error_message()
        return self.view_field.validate(self.presentable_field, self.validity_check, self.topmost_parent)

    def read_only_value(self) -> str:
        return self.presentable_field.value_as_string

    def render_editable_value(self, html: HtmlWriter) -> None:
        html.append_self_closing_tag("input", [
            ("id", self.client_field_id),
            ("name", self.client_field_id),
            ("type", "text"),
            ("value", self.editable_value or ""),
        ])


class MultilineTextFieldControl(ElementFieldControl):
    """Text area; line breaks are kept and every line is trimmed."""

    def clean_postback_value(self, value: str) -> str:
        lines = value.replace("\r\n", "\n").split("\n")
        return "\n".join(line.strip() for line in lines).strip()

    def render_editable_value(self, html: HtmlWriter) -> None:
        html.append_opening_tag("textarea", [("id", self.client_field_id), ("name", self.client_field_id)])
        html.append_html_encoded(self.editable_value)
        html.append_closing_tag("textarea")


class ReferenceFieldControl(ElementFieldControl):
    """Control for a reference submitted as the referenced object's id."""

    def clean_postback_value(self, value: str) -> str:
        return value.strip()


class BoolFieldControl(ElementFieldControl):
    """
    Pair of radio buttons.

    Browsers do not submit a radio group nothing was checked in, so on a
    valid postback an absent key still counts as included; a required field
    then gets its default error.
    """

    view_field: ViewFieldForBool

    def create_child_controls(self, payload: FormPayload) -> None:
        super().create_child_controls(payload)
        if self.postback_state is PostBackState.VALID_POSTBACK and not self.is_included_in_postback:
            self.is_included_in_postback = True
            if self.view_field.mandatoriness is Mandatoriness.REQUIRED:
                self.error_message = self.view_field.default_error_message()

    def render_editable_value(self, html: HtmlWriter) -> None:
        value = (self.editable_value or "").lower()
        self._render_radio_button(html, self.view_field.true_label, "True", value == "true")
        self._render_radio_button(html, self.view_field.false_label, "False", value == "false")

    def _render_radio_button(self, html: HtmlWriter, title: str, value: str, is_checked: bool) -> None:
        html.append_opening_tag("label", css_class="radio")
        attributes = [
            ("id", f"{self.client_field_id}-{value}"),
            ("type", "radio"),
            ("name", self.client_field_id),
        ]
        if is_checked:
            attributes.append(("checked", "checked"))
        attributes.append(("value", value))
        html.append_self_closing_tag("input", attributes)
        html.append_html_encoded(title)
        html.append_closing_tag("label")


# ==================== COLLECTION FIELDS ====================

class CollectionFieldControl(FieldControl):
    """
    Control for a field holding several values, submitted as one string.

    The submitted string is split on the view field's separator, empty
    entries are dropped, and the rest is compared in order against the live
    values. The echo hash covers the values concatenated without separator.
    """

    def __init__(self, presentable_field: CollectionField, view_field: ViewFieldForCollection,
                 config: FormConfig, **kwargs):
        super().__init__(presentable_field, view_field, config, **kwargs)
        self._previous_value = "".join(presentable_field.values_as_string())
        self.postback_values: List[str] = []

    @property
    def previous_value(self) -> str:
        return self._previous_value

    @property
    def separator(self) -> ValueSeparator:
        return self.view_field.value_separator

    def split_postback_value(self, value: str) -> List[str]:
        cleaned_values = (self.clean_postback_value(part) for part in self.separator.split(value))
        return [cleaned for cleaned in cleaned_values if cleaned]

    def create_child_controls(self, payload: FormPayload) -> None:
        self.error_message = None
        self.is_included_in_postback = False
        self.postback_values = []
        if self.postback_state is not PostBackState.VALID_POSTBACK:
            return
        if self.is_read_only:
            self.is_included_in_postback = True
            return
        submitted_value = payload.get(self.client_field_id)
        if submitted_value is None:
            return
        self.is_included_in_postback = True
        self.postback_values = self.split_postback_value(submitted_value)
        live_values = self.presentable_field.values_as_string()
        if self.postback_values == live_values:
            return
        if is_unedited_echo("".join(self.postback_values), payload.get(self.client_field_id + HASH_SUFFIX)):
            logger.debug(f"Values of {self.client_field_id!r} are an unedited echo, keeping live values")
            self.postback_values = live_values
            return
        self.presentable_field.clear()
        for postback_value in self.postback_values:
            if not self.presentable_field.try_add_string(postback_value):
                self.error_message = self.view_field.default_error_message()

    def _validate(self) -> Optional[str]:
        for value, postback_value in zip(self.presentable_field.values, self.postback_values):
            if value is None and postback_value:
                return self.view_field.default_error_message()
        return self.view_field.validate(self.presentable_field, self.validity_check, self.topmost_parent)

    @property
    def editable_values(self) -> List[str]:
        if self.postback_state is PostBackState.VALID_POSTBACK and self.is_included_in_postback:
            return self.postback_values
        return self.presentable_field.values_as_string()

    def read_only_value(self) -> str:
        return self.separator.join(self.presentable_field.values_as_string())

    def render_editable_value(self, html: HtmlWriter) -> None:
        value = self.separator.join(self.editable_values)
        if self.separator is ValueSeparator.LINE_BREAK:
            html.append_opening_tag("textarea", [("id", self.client_field_id), ("name", self.client_field_id)])
            html.append_html_encoded(value)
            html.append_closing_tag("textarea")
        else:
            html.append_self_closing_tag("input", [
                ("id", self.client_field_id),
                ("name", self.client_field_id),
                ("type", "text"),
                ("value", value),
            ])


class ReferenceCollectionFieldControl(CollectionFieldControl):

    def clean_postback_value(self, value: str) -> str:
        return value.strip()
