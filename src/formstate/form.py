"""
Root form control.

A Form binds one presentable object to one FormView for one request:

    form = Form(order, order_view, factory, registry)
    form.create_child_controls(request)
    if form.has_valid_value:
        save(order)
    else:
        response.write(form.render())

``create_child_controls`` fixes the postback state through the instance
registry, builds (and thereby reconciles) the pane tree, and aggregates
validity. On anything but a valid postback nothing is written to the object
graph and validity stays None.
"""

import logging
from typing import List, Optional

from formstate import messages
from formstate.factory import FormFactory
from formstate.html_writer import HtmlWriter
from formstate.instance_registry import InstanceRegistry
from formstate.model import PresentableObject
from formstate.panes import FormPane
from formstate.postback import FormRequest, PostBackState
from formstate.section_identity import NEW_TOKEN
from formstate.validity import Validity, aggregate_validity
from formstate.view import FormView

logger = logging.getLogger(__name__)


class Form:
    """Form for editing one object graph."""

    def __init__(self, presentable_object: PresentableObject, view: FormView, factory: FormFactory,
                 instance_registry: InstanceRegistry):
        self.presentable_object = presentable_object
        self.view = view
        self.factory = factory
        self.instance_registry = instance_registry
        self.has_valid_value: Validity = None
        self.instance_id: Optional[str] = None
        self.postback_state = PostBackState.NO_POSTBACK
        self.panes: List[FormPane] = []
        self.path_and_query = ""
        self._error_message: Optional[str] = None

    @property
    def error_message(self) -> Optional[str]:
        return self._error_message

    @error_message.setter
    def error_message(self, value: Optional[str]) -> None:
        """Set a form-level error; any non-empty message makes the form invalid."""
        self._error_message = value
        if value:
            self.has_valid_value = False
        else:
            self._set_has_valid_value()

    def create_child_controls(self, request: FormRequest) -> None:
        self.path_and_query = request.path_and_query
        self._set_instance_id_and_postback_state(request)
        self.panes = []
        for view_pane in self.view.panes:
            pane = self.factory.build_pane(
                self.presentable_object, view_pane,
                postback_state=self.postback_state,
                topmost_parent=self.presentable_object,
                validity_check=self.view.validity_check,
            )
            self.panes.append(pane)
            pane.create_child_controls(request.form)
        self._set_has_valid_value()

    def _set_instance_id_and_postback_state(self, request: FormRequest) -> None:
        key = self.instance_registry.bucket_key(request.client_address, request.user_name, request.user_agent)
        submitted_token = request.form.get(self.factory.config.instance_field_name)
        self.postback_state, self.instance_id = self.instance_registry.resolve(
            key, submitted_token, raise_on_invalid=self.factory.config.throw_on_invalid_postback)
        logger.debug(f"Postback state of form for {self.presentable_object!r} is {self.postback_state.name}")

    def _set_has_valid_value(self) -> None:
        if self._error_message:
            self.has_valid_value = False
            return
        if self.postback_state is not PostBackState.VALID_POSTBACK:
            self.has_valid_value = None
            return
        for pane in self.panes:
            pane.set_has_valid_value()
        self.has_valid_value = aggregate_validity(pane.has_valid_value for pane in self.panes)

    def render(self, writer: Optional[HtmlWriter] = None) -> str:
        """Render the form; returns the markup written."""
        html = writer if writer is not None else HtmlWriter()
        html.append_opening_tag("form", [
            ("action", self.path_and_query),
            ("enctype", "multipart/form-data"),
            ("method", "post"),
        ])
        config = self.factory.config
        html.append_hidden_input_tag(config.instance_field_name, self.instance_id or "")
        if self.presentable_object.is_new:
            html.append_hidden_input_tag(config.object_field_name, NEW_TOKEN)
        else:
            html.append_hidden_input_tag(config.object_field_name, self.presentable_object.id.hex)
        self._render_error_message(html)
        for pane in self.panes:
            pane.render(html)
        html.append_closing_tag("form")
        return html.to_html()

    def _render_error_message(self, html: HtmlWriter) -> None:
        if self.has_valid_value is not False:
            return
        html.append_opening_tag("div", css_class="error")
        html.append_html_encoded(self._error_message or messages.FORM_ERROR)
        html.append_closing_tag("div")
