"""
View definitions: which fields of an object a form shows, and how.

View fields declare a chain of stable kind tags, most specific first. The
FormFactory walks that chain to pick a control builder, so applications can
override how a kind is rendered without subclassing the view field.

VIEW FIELD KINDS:
- text, multiline_text, number, bool, date, reference
- multiple_texts, multiple_numbers, multiple_references

View fields are also the validation collaborator of the field controls:
``validate`` returns an error message or None, ``default_error_message`` is
what a control shows when a submitted string cannot be parsed at all.
"""

import logging
from dataclasses import dataclass, field
from enum import Enum
from typing import ClassVar, List, Optional, Tuple

from formstate import messages
from formstate.model import ElementField, CollectionField, PresentableObject, StringField

logger = logging.getLogger(__name__)


class Mandatoriness(Enum):
    OPTIONAL = "optional"
    DESIRED = "desired"
    REQUIRED = "required"


class ValidityCheck(Enum):
    """How strictly desired fields are checked."""
    TRANSITIONAL = "transitional"
    STRICT = "strict"


class ValueSeparator(Enum):
    """Separator between the values of a multi-value field."""
    COMMA = ","
    SEMICOLON = ";"
    SPACE = " "
    LINE_BREAK = "\n"

    @property
    def display(self) -> str:
        """Separator used when rendering values into one input."""
        if self is ValueSeparator.COMMA or self is ValueSeparator.SEMICOLON:
            return self.value + " "
        return self.value

    def split(self, value: str) -> List[str]:
        """Split a submitted string; empty entries are dropped."""
        if self is ValueSeparator.LINE_BREAK:
            value = value.replace("\r\n", "\n")
        return [part for part in value.split(self.value) if part.strip()]

    def join(self, values: List[str]) -> str:
        return self.display.join(values)


# ==================== VIEW FIELDS ====================

@dataclass
class ViewField:
    """Base of all view fields. ``key`` may be a dotted key chain."""
    key: str
    title: str = ""

    KINDS: ClassVar[Tuple[str, ...]] = ()

    @property
    def kinds(self) -> Tuple[str, ...]:
        return self.KINDS


@dataclass
class ViewFieldForEditableValue(ViewField):
    mandatoriness: Mandatoriness = Mandatoriness.OPTIONAL
    is_read_only: bool = False

    def is_mandatory(self, validity_check: ValidityCheck) -> bool:
        return (self.mandatoriness is Mandatoriness.REQUIRED
                or (validity_check is ValidityCheck.STRICT and self.mandatoriness is Mandatoriness.DESIRED))

    def default_error_message(self) -> str:
        return f"{messages.PLEASE_ENTER_A_VALID_VALUE} {self._mandatoriness_info()}"

    def _mandatoriness_info(self) -> str:
        if self.mandatoriness is Mandatoriness.REQUIRED:
            return messages.THIS_IS_A_MANDATORY_FIELD
        if self.mandatoriness is Mandatoriness.DESIRED:
            return messages.YOU_CAN_LEAVE_BLANK_FOR_NOW
        return messages.YOU_CAN_LEAVE_BLANK


@dataclass
class ViewFieldForElement(ViewFieldForEditableValue):
    """View field for a field holding a single value."""

    def validate(self, presentable_field: ElementField, validity_check: ValidityCheck,
                 presentable_object: Optional[PresentableObject] = None) -> Optional[str]:
        """Return an error message for the field's current value, or None."""
        if self.is_mandatory(validity_check) and not presentable_field.value_as_string:
            return self.default_error_message()
        return None


@dataclass
class ViewFieldForSingleLineText(ViewFieldForElement):
    max_length: Optional[int] = None

    KINDS: ClassVar[Tuple[str, ...]] = ("text",)

    def default_error_message(self) -> str:
        if self.max_length is None:
            return super().default_error_message()
        if self.max_length == 1:
            message = messages.AT_MOST_ONE_CHARACTER
        else:
            message = messages.AT_MOST_N_CHARACTERS.format(self.max_length)
        return f"{message} {self._mandatoriness_info()}"

    def validate(self, presentable_field: ElementField, validity_check: ValidityCheck,
                 presentable_object: Optional[PresentableObject] = None) -> Optional[str]:
        error_message = super().validate(presentable_field, validity_check, presentable_object)
        value = presentable_field.value_as_string
        if error_message is None and value and self.max_length is not None and len(value) > self.max_length:
            error_message = self.default_error_message()
        return error_message


@dataclass
class ViewFieldForMultilineText(ViewFieldForSingleLineText):
    KINDS: ClassVar[Tuple[str, ...]] = ("multiline_text", "text")


@dataclass
class ViewFieldForNumber(ViewFieldForElement):
    min_value: Optional[float] = None
    max_value: Optional[float] = None

    KINDS: ClassVar[Tuple[str, ...]] = ("number", "text")

    def default_error_message(self) -> str:
        if self.min_value is not None and self.max_value is not None:
            message = messages.NUMBER_BETWEEN.format(self.min_value, self.max_value)
        elif self.min_value is not None:
            message = messages.NUMBER_AT_LEAST.format(self.min_value)
        elif self.max_value is not None:
            message = messages.NUMBER_AT_MOST.format(self.max_value)
        else:
            return super().default_error_message()
        return f"{message} {self._mandatoriness_info()}"

    def validate(self, presentable_field: ElementField, validity_check: ValidityCheck,
                 presentable_object: Optional[PresentableObject] = None) -> Optional[str]:
        error_message = super().validate(presentable_field, validity_check, presentable_object)
        value = presentable_field.value_as_string
        if error_message is None and value:
            try:
                number = float(value)
            except ValueError:
                return self.default_error_message()
            if ((self.min_value is not None and number < self.min_value)
                    or (self.max_value is not None and number > self.max_value)):
                error_message = self.default_error_message()
        return error_message


@dataclass
class ViewFieldForBool(ViewFieldForElement):
    """Rendered as a pair of radio buttons."""
    true_label: str = "Yes"
    false_label: str = "No"

    KINDS: ClassVar[Tuple[str, ...]] = ("bool",)


@dataclass
class ViewFieldForDate(ViewFieldForElement):
    KINDS: ClassVar[Tuple[str, ...]] = ("date", "text")


@dataclass
class ViewFieldForReference(ViewFieldForElement):
    """View field for a reference to another object, submitted as its id."""

    KINDS: ClassVar[Tuple[str, ...]] = ("reference",)

    def default_error_message(self) -> str:
        return f"{messages.PLEASE_SELECT_A_VALUE} {self._mandatoriness_info()}"


@dataclass
class ViewFieldForCollection(ViewFieldForEditableValue):
    """View field for a field holding several values."""
    limit: Optional[int] = None
    value_separator: ValueSeparator = ValueSeparator.COMMA

    def default_error_message(self) -> str:
        if self.limit is not None and self.limit < 2:
            message = messages.PLEASE_ENTER_A_VALID_VALUE
        else:
            message = messages.PLEASE_ENTER_VALID_VALUES
            if self.limit is not None:
                message += " " + messages.UP_TO_N_VALUES_ARE_ALLOWED.format(self.limit)
        return f"{message} {self._mandatoriness_info()}"

    def element_view_field(self) -> Optional[ViewFieldForElement]:
        """View field each single value is validated with, if any."""
        return None

    def validate(self, presentable_field: CollectionField, validity_check: ValidityCheck,
                 presentable_object: Optional[PresentableObject] = None) -> Optional[str]:
        """Return an error message for the field's current values, or None.

        Mandatoriness is checked against the values left after empty entries
        were dropped, then the limit, then every single value.
        """
        values = presentable_field.values_as_string()
        if self.is_mandatory(validity_check) and not values:
            return self.default_error_message()
        if self.limit is not None and len(values) > self.limit:
            return self.default_error_message()
        element_view_field = self.element_view_field()
        if element_view_field is not None:
            for value in values:
                element = StringField(presentable_field.key, value, presentable_field.is_read_only)
                error_message = element_view_field.validate(element, validity_check, presentable_object)
                if error_message is not None:
                    return error_message
        return None


@dataclass
class ViewFieldForMultipleTexts(ViewFieldForCollection):
    max_length: Optional[int] = None

    KINDS: ClassVar[Tuple[str, ...]] = ("multiple_texts",)

    def element_view_field(self) -> Optional[ViewFieldForElement]:
        return ViewFieldForSingleLineText(self.key, self.title, max_length=self.max_length)


@dataclass
class ViewFieldForMultipleNumbers(ViewFieldForCollection):
    min_value: Optional[float] = None
    max_value: Optional[float] = None

    KINDS: ClassVar[Tuple[str, ...]] = ("multiple_numbers", "multiple_texts")

    def element_view_field(self) -> Optional[ViewFieldForElement]:
        return ViewFieldForNumber(self.key, self.title, min_value=self.min_value, max_value=self.max_value)


@dataclass
class ViewFieldForMultipleReferences(ViewFieldForCollection):
    value_separator: ValueSeparator = ValueSeparator.LINE_BREAK

    KINDS: ClassVar[Tuple[str, ...]] = ("multiple_references",)


# ==================== VIEW PANES ====================

@dataclass
class ViewPane:
    """Base of all view panes.

    A pane with a key renders the nested object held by the field of that key
    and extends the client field id prefix with it.
    """
    title: str = ""
    key: Optional[str] = None

    def find_view_field(self, key: str) -> Optional[ViewField]:
        """Find a view field named by the object this pane renders, or None."""
        return None


@dataclass
class ViewPaneForFields(ViewPane):
    fields: List[ViewField] = field(default_factory=list)

    def find_view_field(self, key: str) -> Optional[ViewField]:
        for view_field in self.fields:
            if view_field.key == key:
                return view_field
        return None


@dataclass
class ViewPaneForPanes(ViewPane):
    panes: List[ViewPane] = field(default_factory=list)

    def find_view_field(self, key: str) -> Optional[ViewField]:
        # keyed child panes render other objects
        for pane in self.panes:
            if not pane.key:
                view_field = pane.find_view_field(key)
                if view_field is not None:
                    return view_field
        return None


@dataclass
class ViewCollectionPane(ViewPane):
    """
    Pane rendering one section per item of an object collection field.

    ``key`` names the ObjectCollectionField, ``item_pane`` is rendered once per
    item. ``title_field`` names the item field whose value titles a section.
    """
    item_pane: ViewPane = field(default_factory=ViewPaneForFields)
    allows_adding: bool = True
    allows_removing: bool = True
    is_sortable: bool = False
    title_field: Optional[str] = None


@dataclass
class FormView(ViewPaneForPanes):
    """Root view of a form."""
    validity_check: ValidityCheck = ValidityCheck.TRANSITIONAL
