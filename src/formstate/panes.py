"""
Form pane tree.

Panes mirror the view pane tree for one request. Each pane knows the object
it renders, the client field id prefix and suffix its fields are named with,
and the postback state it reconciles under.

NAMING:
- a pane with a key extends the prefix: "" -> "address" -> "address.geo"
- a section of a collection pane appends "_{i}" to the suffix
- a field's input is named prefix + "." + key + suffix
- a section's identity token input is named prefix + suffix
"""

import logging
from enum import Enum
from typing import TYPE_CHECKING, List, Optional, Tuple

from formstate.collection_reconciler import CollectionReconciler, ResolvedSection
from formstate.exceptions import ConfigurationError, FieldNotFoundError
from formstate.field_controls import FieldControl, client_field_id_for
from formstate.html_writer import HtmlWriter
from formstate.model import ElementField, ObjectCollectionField, PresentableField, PresentableObject
from formstate.postback import FormPayload, PostBackState
from formstate.section_identity import encode_token
from formstate.validity import Validity, aggregate_validity
from formstate.view import (
    ValidityCheck,
    ViewCollectionPane,
    ViewFieldForEditableValue,
    ViewPane,
    ViewPaneForFields,
    ViewPaneForPanes,
)

if TYPE_CHECKING:
    from formstate.factory import FormFactory

logger = logging.getLogger(__name__)


class FormPaneType(Enum):
    STAND_ALONE = "stand_alone"
    SECTION = "section"


class FormPane:
    """Base of all form panes."""

    tag_name = "div"

    def __init__(self, presentable_object: PresentableObject, view_pane: ViewPane, factory: 'FormFactory',
                 client_field_id_prefix: str = "", client_field_id_suffix: str = "",
                 postback_state: PostBackState = PostBackState.NO_POSTBACK,
                 topmost_parent: Optional[PresentableObject] = None,
                 validity_check: ValidityCheck = ValidityCheck.TRANSITIONAL):
        self.presentable_object = presentable_object
        self.view_pane = view_pane
        self.factory = factory
        self.key = view_pane.key
        self.client_field_id_prefix = client_field_id_prefix
        if self.key:
            if self.client_field_id_prefix:
                self.client_field_id_prefix += "."
            self.client_field_id_prefix += self.key
        self.client_field_id_suffix = client_field_id_suffix
        self.postback_state = postback_state
        self.topmost_parent = topmost_parent if topmost_parent is not None else presentable_object
        self.validity_check = validity_check
        self.has_valid_value: Validity = None
        self.attributes: List[Tuple[str, str]] = []

    @property
    def token_name(self) -> str:
        return self.client_field_id_prefix + self.client_field_id_suffix

    def presentable_field_to_render_pane_for(self) -> Optional[PresentableField]:
        return self.factory.find_field(self.presentable_object, self.key)

    def presentable_object_to_render_pane_for(self) -> Optional[PresentableObject]:
        """The object itself, or for a keyed pane the object its key field holds."""
        if not self.key:
            return self.presentable_object
        presentable_field = self.presentable_field_to_render_pane_for()
        if presentable_field is None:
            return None
        if not presentable_field.is_for_single_element:
            if self.factory.config.ignore_missing_fields:
                return None
            raise ConfigurationError(
                f"Presentable field with key {self.key!r} was expected to be for a single element, "
                f"but it is for a collection."
            )
        return presentable_field.value

    def create_child_controls(self, payload: FormPayload) -> None:
        raise NotImplementedError

    def set_has_valid_value(self) -> None:
        raise NotImplementedError

    def _child_kwargs(self, postback_state: Optional[PostBackState] = None) -> dict:
        return dict(
            client_field_id_prefix=self.client_field_id_prefix,
            client_field_id_suffix=self.client_field_id_suffix,
            postback_state=self.postback_state if postback_state is None else postback_state,
            topmost_parent=self.topmost_parent,
            validity_check=self.validity_check,
        )

    def render(self, html: HtmlWriter) -> None:
        raise NotImplementedError


class FormPaneWithTitle(FormPane):
    """Pane rendered either stand-alone or as a section of a collection pane."""

    def __init__(self, presentable_object: PresentableObject, view_pane: ViewPane, factory: 'FormFactory',
                 pane_type: FormPaneType = FormPaneType.STAND_ALONE, is_new_from_postback: bool = False,
                 sort_value: Optional[int] = None, **kwargs):
        super().__init__(presentable_object, view_pane, factory, **kwargs)
        self.pane_type = pane_type
        self.is_new_from_postback = is_new_from_postback
        self.sort_value = sort_value

    @property
    def is_section(self) -> bool:
        return self.pane_type is FormPaneType.SECTION

    def render(self, html: HtmlWriter) -> None:
        attributes = list(self.attributes)
        if self.is_section:
            tag_name = "section"
            if self.presentable_object.is_marked_for_removal:
                attributes.insert(0, ("class", "removed"))
            elif self.has_valid_value is False:
                attributes.append(("data-selected", "1"))
        else:
            tag_name = "fieldset"
            attributes.insert(0, ("class", "fieldset"))
        html.append_opening_tag(tag_name, attributes)
        if not self.is_section and self.view_pane.title:
            html.append_opening_tag("span")
            html.append_html_encoded(self.view_pane.title)
            html.append_closing_tag("span")
        if self.is_section:
            html.append_hidden_input_tag(self.token_name,
                                         encode_token(self.presentable_object, self.is_new_from_postback))
            if self.sort_value is not None:
                html.append_hidden_input_tag(self.token_name + "::", str(self.sort_value))
            html.append_opening_tag("fieldset", css_class="fieldset")
        self.render_child_controls(html)
        if self.is_section:
            html.append_closing_tag("fieldset")
        html.append_closing_tag(tag_name)

    def render_child_controls(self, html: HtmlWriter) -> None:
        raise NotImplementedError


class FormPaneForFields(FormPaneWithTitle):
    """Pane holding one control per view field."""

    view_pane: ViewPaneForFields

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.field_controls: List[FieldControl] = []

    def create_child_controls(self, payload: FormPayload) -> None:
        self.field_controls = []
        presentable_object = self.presentable_object_to_render_pane_for()
        if presentable_object is None:
            return
        for view_field in self.view_pane.fields:
            presentable_field = self.factory.find_field(presentable_object, view_field.key)
            if presentable_field is None:
                continue
            control = self.factory.build_field_control(presentable_field, view_field, **self._child_kwargs())
            self.field_controls.append(control)
        for control in self.field_controls:
            control.create_child_controls(payload)

    def set_has_valid_value(self) -> None:
        if self.postback_state is not PostBackState.VALID_POSTBACK:
            self.has_valid_value = None
            return
        for control in self.field_controls:
            control.set_has_valid_value()
        self.has_valid_value = aggregate_validity(control.has_valid_value for control in self.field_controls)

    def render_child_controls(self, html: HtmlWriter) -> None:
        for control in self.field_controls:
            control.render(html)


class FormPaneForPanes(FormPaneWithTitle):
    """Pane holding child panes."""

    view_pane: ViewPaneForPanes

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.child_panes: List[FormPane] = []

    def create_child_controls(self, payload: FormPayload) -> None:
        self.child_panes = []
        presentable_object = self.presentable_object_to_render_pane_for()
        if presentable_object is None:
            return
        for child_view_pane in self.view_pane.panes:
            child_pane = self.factory.build_pane(presentable_object, child_view_pane, **self._child_kwargs())
            self.child_panes.append(child_pane)
            child_pane.create_child_controls(payload)

    def set_has_valid_value(self) -> None:
        if self.postback_state is not PostBackState.VALID_POSTBACK:
            self.has_valid_value = None
            return
        for child_pane in self.child_panes:
            child_pane.set_has_valid_value()
        self.has_valid_value = aggregate_validity(child_pane.has_valid_value for child_pane in self.child_panes)

    def render_child_controls(self, html: HtmlWriter) -> None:
        for child_pane in self.child_panes:
            child_pane.render(html)


class FormCollectionPane(FormPane):
    """
    Pane rendering one section per item of an object collection field.

    Sections are reconciled by the CollectionReconciler before any of their
    fields read the payload. Unscanned sections are rendered without
    reconciliation, so they leave the pane's validity unknown. Sections whose
    object is marked for removal do not take part in validity.
    """

    view_pane: ViewCollectionPane

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        self.sections: List[Tuple[ResolvedSection, FormPaneWithTitle]] = []
        self.template: Optional[FormPaneWithTitle] = None
        self.is_read_only = False

    def create_child_controls(self, payload: FormPayload) -> None:
        self.sections = []
        self.template = None
        presentable_field = self.presentable_field_to_render_pane_for()
        if presentable_field is None:
            return
        if not isinstance(presentable_field, ObjectCollectionField):
            raise ConfigurationError(
                f"Form collection pane for presentable field of type {type(presentable_field).__name__} "
                f"with key {presentable_field.key!r} cannot be rendered because it is not a field for "
                f"object collections."
            )
        self.is_read_only = presentable_field.is_read_only
        allows_adding = self.view_pane.allows_adding and not self.is_read_only
        allows_removing = self.view_pane.allows_removing and not self.is_read_only
        if allows_adding:
            self._create_section_template(presentable_field, payload)
        reconciler = CollectionReconciler(presentable_field, allows_adding, allows_removing)
        resolved_sections = reconciler.reconcile(payload, self.token_name, self.postback_state)
        is_sortable = self.view_pane.is_sortable and not self.is_read_only
        for resolved in resolved_sections:
            postback_state = self.postback_state if resolved.is_scanned else PostBackState.NO_POSTBACK
            kwargs = self._child_kwargs(postback_state)
            kwargs['client_field_id_suffix'] += resolved.suffix
            section = self.factory.build_section(
                resolved.presentable_object, self.view_pane.item_pane,
                is_new_from_postback=resolved.is_new_from_postback,
                sort_value=resolved.index if is_sortable else None,
                **kwargs,
            )
            self._add_title_to_section(resolved.presentable_object, section)
            self.sections.append((resolved, section))
        for _, section in self.sections:
            section.create_child_controls(payload)

    def _create_section_template(self, presentable_field: ObjectCollectionField, payload: FormPayload) -> None:
        placeholder = presentable_field.new_item()
        self.template = self.factory.build_section(
            placeholder, self.view_pane.item_pane, is_new_from_postback=True,
            **self._child_kwargs(PostBackState.NO_POSTBACK),
        )
        self._add_title_to_section(placeholder, self.template)
        self.template.create_child_controls(payload)

    def _add_title_to_section(self, presentable_object: PresentableObject, section: FormPaneWithTitle) -> None:
        title_field = self.view_pane.title_field
        if not title_field:
            return
        presentable_field = presentable_object.find_field(title_field)
        if presentable_field is None:
            if not self.factory.config.ignore_missing_fields:
                raise FieldNotFoundError(title_field)
            return
        view_field = self.view_pane.item_pane.find_view_field(title_field)
        is_editable = (isinstance(view_field, ViewFieldForEditableValue) and not view_field.is_read_only
                       and not presentable_field.is_read_only)
        if is_editable:
            # the client reads the title from the input while it is edited
            title_input_name = client_field_id_for(title_field, section.client_field_id_prefix,
                                                   section.client_field_id_suffix)
            section.attributes.append(("data-title-input-name", title_input_name))
        elif isinstance(presentable_field, ElementField) and presentable_field.value_as_string:
            section.attributes.append(("data-title", presentable_field.value_as_string))

    def set_has_valid_value(self) -> None:
        if self.postback_state is not PostBackState.VALID_POSTBACK:
            self.has_valid_value = None
            return
        # unscanned sections were not submitted and keep the pane unknown
        live_sections = [section for _, section in self.sections
                         if not section.presentable_object.is_marked_for_removal]
        for section in live_sections:
            section.set_has_valid_value()
        self.has_valid_value = aggregate_validity(section.has_valid_value for section in live_sections)

    def render(self, html: HtmlWriter) -> None:
        attributes = [("class", "collection")]
        if not self.is_read_only:
            if self.view_pane.allows_removing:
                attributes.append(("data-remove-button", "1"))
            if self.view_pane.is_sortable:
                attributes.append(("data-is-sortable", "1"))
        html.append_opening_tag("div", attributes)
        if self.view_pane.title:
            html.append_opening_tag("span")
            html.append_html_encoded(self.view_pane.title)
            html.append_closing_tag("span")
        if self.template is not None:
            html.append_opening_tag("template")
            self.template.render(html)
            html.append_closing_tag("template")
        for _, section in self.sections:
            section.render(html)
        html.append_closing_tag("div")
