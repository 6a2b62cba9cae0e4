"""Pytest configuration and shared fixtures."""
from datetime import date
from html.parser import HTMLParser

import pytest

from formstate import (
    BoolField,
    DateField,
    Form,
    FormFactory,
    FormRequest,
    FormView,
    InstanceRegistry,
    IntField,
    Mandatoriness,
    ObjectCollectionField,
    PresentableObject,
    StringCollectionField,
    StringField,
    ViewCollectionPane,
    ViewFieldForBool,
    ViewFieldForDate,
    ViewFieldForMultilineText,
    ViewFieldForMultipleTexts,
    ViewFieldForNumber,
    ViewFieldForSingleLineText,
    ViewPaneForFields,
)
from formstate.config import reset_default_config


def make_line_item(product="", amount=None, is_new=True):
    """Line item of an order; new unless stated otherwise."""
    item = PresentableObject(is_new=is_new)
    item.add_field(StringField("product", product))
    item.add_field(IntField("amount", amount))
    return item


def make_order(items=(), is_new=False):
    """Order as loaded from storage."""
    order = PresentableObject(is_new=is_new)
    order.add_field(StringField("customer", "Ada Lovelace"))
    order.add_field(IntField("quantity", 3))
    order.add_field(StringField("note", "first line\nsecond line"))
    order.add_field(BoolField("express", False))
    order.add_field(DateField("due", date(2024, 5, 1)))
    order.add_field(StringCollectionField("tags", ["fragile", "gift"]))
    order.add_field(ObjectCollectionField("items", make_line_item, items))
    return order


class FormFieldParser(HTMLParser):
    """Collects the fields a browser would submit for rendered markup.

    Inputs inside <template> are skipped, unchecked radio buttons too.
    """

    def __init__(self):
        super().__init__(convert_charrefs=True)
        self.fields = {}
        self._template_depth = 0
        self._textarea_name = None
        self._textarea_text = []

    def handle_starttag(self, tag, attrs):
        attributes = dict(attrs)
        if tag == "template":
            self._template_depth += 1
            return
        if self._template_depth:
            return
        if tag == "input":
            name = attributes.get("name")
            if name is None:
                return
            if attributes.get("type") == "radio" and "checked" not in attributes:
                return
            self.fields.setdefault(name, []).append(attributes.get("value") or "")
        elif tag == "textarea":
            self._textarea_name = attributes.get("name")
            self._textarea_text = []

    def handle_endtag(self, tag):
        if tag == "template":
            self._template_depth -= 1
        elif tag == "textarea" and self._textarea_name is not None:
            self.fields.setdefault(self._textarea_name, []).append("".join(self._textarea_text))
            self._textarea_name = None

    def handle_data(self, data):
        if self._textarea_name is not None:
            self._textarea_text.append(data)


@pytest.fixture(autouse=True)
def reset_config():
    """Restore the default config after each test."""
    reset_default_config()
    yield
    reset_default_config()


@pytest.fixture
def registry():
    return InstanceRegistry()


@pytest.fixture
def factory():
    return FormFactory()


@pytest.fixture
def order():
    """Existing order with two existing line items."""
    return make_order([
        make_line_item("Pencil", 2, is_new=False),
        make_line_item("Eraser", 1, is_new=False),
    ])


@pytest.fixture
def order_view():
    item_pane = ViewPaneForFields(fields=[
        ViewFieldForSingleLineText("product", "Product", mandatoriness=Mandatoriness.REQUIRED),
        ViewFieldForNumber("amount", "Amount", min_value=1),
    ])
    return FormView(panes=[
        ViewPaneForFields(title="Order", fields=[
            ViewFieldForSingleLineText("customer", "Customer", mandatoriness=Mandatoriness.REQUIRED, max_length=40),
            ViewFieldForNumber("quantity", "Quantity", min_value=1, max_value=100),
            ViewFieldForMultilineText("note", "Note"),
            ViewFieldForBool("express", "Express"),
            ViewFieldForDate("due", "Due"),
            ViewFieldForMultipleTexts("tags", "Tags"),
        ]),
        ViewCollectionPane(title="Items", key="items", item_pane=item_pane, title_field="product"),
    ])


@pytest.fixture
def parse_fields():
    """Parse rendered markup into the fields a browser would submit."""
    def parse(markup):
        parser = FormFieldParser()
        parser.feed(markup)
        parser.close()
        return parser.fields
    return parse


@pytest.fixture
def run_form(factory, registry):
    """Build a form and run one request against it."""
    def run(presentable_object, view, fields=None, form_factory=None, **request_kwargs):
        request_kwargs.setdefault("client_address", "10.0.0.1")
        request_kwargs.setdefault("user_name", "alice")
        request_kwargs.setdefault("user_agent", "pytest")
        form = Form(presentable_object, view, form_factory or factory, registry)
        form.create_child_controls(FormRequest.from_mapping(fields or {}, **request_kwargs))
        return form
    return run


@pytest.fixture
def new_line_item():
    return make_line_item


@pytest.fixture
def new_order():
    return make_order
