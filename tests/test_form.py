"""End-to-end request cycles through Form."""
import pytest

from formstate import (
    FormConfig,
    FormFactory,
    InvalidPostBackError,
    MissingFieldError,
    PostBackState,
    ViewCollectionPane,
    ViewFieldForSingleLineText,
)
from formstate.messages import FORM_ERROR


def submit(run_form, presentable_object, view, form, parse_fields, form_factory=None, **overrides):
    """Post back what a form rendered, with some fields overridden or removed (None)."""
    fields = parse_fields(form.render())
    for key, value in overrides.items():
        if value is None:
            fields.pop(key, None)
        else:
            fields[key] = [value]
    return run_form(presentable_object, view, fields, form_factory=form_factory)


def hashes(fields):
    return {key: value for key, value in fields.items() if key.endswith("::")}


def products(order):
    return [item["product"].value for item in order["items"]]


class TestFirstRender:

    def test_no_postback_has_unknown_validity(self, run_form, order, order_view):
        form = run_form(order, order_view)
        assert form.postback_state is PostBackState.NO_POSTBACK
        assert form.has_valid_value is None
        assert 'class="error"' not in form.render()

    def test_rendered_fields(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        fields = parse_fields(form.render())
        assert fields["instance"] == [form.instance_id]
        assert fields["object"] == [order.id.hex]
        assert fields["customer"] == ["Ada Lovelace"]
        assert fields["note"] == ["first line\nsecond line"]
        assert fields["express"] == ["False"]
        assert fields["due"] == ["2024-05-01"]
        assert fields["tags"] == ["fragile, gift"]
        items = list(order["items"])
        assert fields["items_0"] == [items[0].id.hex]
        assert fields["items_1"] == [items[1].id.hex]
        assert fields["items.product_0"] == ["Pencil"]
        assert fields["items.amount_1"] == ["1"]

    def test_new_object_is_rendered_as_new(self, run_form, order_view, parse_fields, new_order):
        form = run_form(new_order(is_new=True), order_view)
        assert parse_fields(form.render())["object"] == ["N"]

    def test_section_template_is_not_submitted(self, run_form, order, order_view, parse_fields):
        markup = run_form(order, order_view).render()
        fields = parse_fields(markup)
        assert "<template>" in markup
        assert 'name="items"' in markup
        assert 'name="items.product"' in markup
        assert "items" not in fields
        assert "items.product" not in fields

    def test_editable_section_title_names_its_input(self, run_form, order, order_view):
        markup = run_form(order, order_view).render()
        assert 'data-title-input-name="items.product_0"' in markup
        assert 'data-title-input-name="items.product_1"' in markup
        assert 'data-title-input-name="items.product"' in markup
        assert 'data-title="Pencil"' not in markup

    def test_read_only_section_title_is_rendered(self, run_form, order, order_view):
        order_view.panes[1].item_pane.fields[0] = ViewFieldForSingleLineText("product", "Product", is_read_only=True)
        markup = run_form(order, order_view).render()
        assert 'data-title="Pencil"' in markup
        assert 'data-title="Eraser"' in markup
        assert "data-title-input-name" not in markup

    def test_section_title_without_view_field_is_rendered(self, run_form, order, order_view):
        order_view.panes[1].title_field = "amount"
        order_view.panes[1].item_pane.fields.pop()
        markup = run_form(order, order_view).render()
        assert 'data-title="2"' in markup


class TestRoundTrip:

    def test_unchanged_round_trip_is_valid(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        postback = submit(run_form, order, order_view, form, parse_fields)
        assert postback.postback_state is PostBackState.VALID_POSTBACK
        assert postback.has_valid_value is True
        assert order["customer"].value == "Ada Lovelace"
        assert order["tags"].values == ["fragile", "gift"]
        assert products(order) == ["Pencil", "Eraser"]

    def test_unchanged_round_trip_renders_same_hashes(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        first_fields = parse_fields(form.render())
        postback = run_form(order, order_view, first_fields)
        second_fields = parse_fields(postback.render())
        assert hashes(second_fields) == hashes(first_fields)
        assert second_fields["instance"] != first_fields["instance"]

    def test_edits_are_written(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        postback = submit(run_form, order, order_view, form, parse_fields,
                          customer="  Grace   Hopper ", express="True", tags="fragile; glass, gift",
                          **{"items.amount_0": "5"})
        assert postback.has_valid_value is True
        assert order["customer"].value == "Grace Hopper"
        assert order["express"].value is True
        assert order["tags"].values == ["fragile; glass", "gift"]
        assert list(order["items"])[0]["amount"].value == 5

    def test_live_value_changed_since_render_wins_over_echo(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        fields = parse_fields(form.render())
        order["customer"].value = "Charles Babbage"
        postback = run_form(order, order_view, fields)
        assert postback.has_valid_value is True
        assert order["customer"].value == "Charles Babbage"
        assert 'value="Charles Babbage"' in postback.render()

    def test_replayed_submission_is_invalid_postback(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        fields = parse_fields(form.render())
        run_form(order, order_view, fields)

        fields["customer"] = ["Mallory"]
        replay = run_form(order, order_view, fields)
        assert replay.postback_state is PostBackState.INVALID_POSTBACK
        assert replay.has_valid_value is None
        assert order["customer"].value == "Ada Lovelace"

    def test_token_of_another_client_is_invalid(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        fields = parse_fields(form.render())
        postback = run_form(order, order_view, fields, user_name="bob")
        assert postback.postback_state is PostBackState.INVALID_POSTBACK

    def test_invalid_postback_raises_when_configured(self, run_form, registry, order, order_view):
        strict_factory = FormFactory(config=FormConfig(throw_on_invalid_postback=True))
        with pytest.raises(InvalidPostBackError):
            run_form(order, order_view, {"instance": "forged"}, form_factory=strict_factory)
        # nothing is issued for a rendering that never happens
        assert registry.outstanding_count() == 0


class TestValidity:

    def test_parse_error_keeps_other_edits(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        postback = submit(run_form, order, order_view, form, parse_fields, quantity="many", customer="Grace Hopper")
        assert postback.has_valid_value is False
        assert order["quantity"].value == 3
        assert order["customer"].value == "Grace Hopper"

        markup = postback.render()
        assert FORM_ERROR in markup
        assert 'class="fielderror"' in markup
        assert 'value="many"' in markup

    def test_validation_error(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        postback = submit(run_form, order, order_view, form, parse_fields, quantity="500")
        assert postback.has_valid_value is False
        # parsed values are written even if they do not validate
        assert order["quantity"].value == 500

    def test_invalid_section_is_selected(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        postback = submit(run_form, order, order_view, form, parse_fields, **{"items.product_1": ""})
        assert postback.has_valid_value is False
        collection_pane = postback.panes[1]
        assert collection_pane.has_valid_value is False
        assert [section.has_valid_value for _, section in collection_pane.sections] == [True, False]
        assert 'data-selected="1"' in postback.render()

    def test_absent_field_leaves_validity_unknown(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        postback = submit(run_form, order, order_view, form, parse_fields, note=None)
        assert postback.postback_state is PostBackState.VALID_POSTBACK
        assert postback.has_valid_value is None
        assert order["note"].value == "first line\nsecond line"

    def test_absent_section_field_leaves_validity_unknown(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        postback = submit(run_form, order, order_view, form, parse_fields, **{"items.amount_1": None})
        collection_pane = postback.panes[1]
        first_section, second_section = [section for _, section in collection_pane.sections]
        assert first_section.has_valid_value is True
        assert second_section.has_valid_value is None
        assert collection_pane.has_valid_value is None
        assert postback.has_valid_value is None

    def test_truncated_sections_leave_validity_unknown(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        fields = {key: value for key, value in parse_fields(form.render()).items()
                  if not key.endswith(("_1", "_1::"))}
        postback = run_form(order, order_view, fields)
        assert postback.postback_state is PostBackState.VALID_POSTBACK
        assert [resolved.is_scanned for resolved, _ in postback.panes[1].sections] == [True, False]
        assert postback.has_valid_value is None
        assert products(order) == ["Pencil", "Eraser"]

    def test_gap_in_sections_keeps_items(self, run_form, order, order_view, parse_fields, new_line_item):
        sharpener = new_line_item("Sharpener", 1, is_new=False)
        order["items"].add(sharpener)
        form = run_form(order, order_view)
        fields = {key: value for key, value in parse_fields(form.render()).items()
                  if not key.endswith(("_1", "_1::"))}
        fields["items.product_2"] = ["Pencil sharpener"]

        postback = run_form(order, order_view, fields)
        assert postback.has_valid_value is None
        assert [resolved.is_scanned for resolved, _ in postback.panes[1].sections] == [True, False, False]
        assert products(order) == ["Pencil", "Eraser", "Sharpener"]
        # sections after the gap are not reconciled
        assert sharpener["product"].value == "Sharpener"

    def test_absent_field_raises_when_configured(self, run_form, order, order_view, parse_fields):
        strict_factory = FormFactory(config=FormConfig(throw_on_missing_fields=True))
        form = run_form(order, order_view, form_factory=strict_factory)
        with pytest.raises(MissingFieldError) as error:
            submit(run_form, order, order_view, form, parse_fields, form_factory=strict_factory, note=None)
        assert error.value.client_field_id == "note"

    def test_absent_field_of_new_object_does_not_raise(self, run_form, order_view, parse_fields, new_order):
        strict_factory = FormFactory(config=FormConfig(throw_on_missing_fields=True))
        order = new_order(is_new=True)
        form = run_form(order, order_view, form_factory=strict_factory)
        postback = submit(run_form, order, order_view, form, parse_fields, form_factory=strict_factory, note=None)
        assert postback.has_valid_value is None

    def test_error_message_makes_form_invalid(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        postback = submit(run_form, order, order_view, form, parse_fields)
        postback.error_message = "The order was changed by someone else."
        assert postback.has_valid_value is False
        assert "The order was changed by someone else." in postback.render()

        postback.error_message = None
        assert postback.has_valid_value is True


class TestSections:

    def test_add_new_item(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        postback = submit(run_form, order, order_view, form, parse_fields,
                          items_2="N", **{"items.product_2": "Ruler", "items.amount_2": "4"})
        assert postback.has_valid_value is True
        assert products(order) == ["Pencil", "Eraser", "Ruler"]
        new_item = list(order["items"])[2]
        assert new_item.is_new
        assert new_item["amount"].value == 4
        assert parse_fields(postback.render())["items_2"] == ["N"]

    def test_added_then_removed_item_is_not_added(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        postback = submit(run_form, order, order_view, form, parse_fields,
                          items_2="R-N", **{"items.product_2": "Ruler"})
        assert postback.has_valid_value is True
        assert products(order) == ["Pencil", "Eraser"]
        markup = postback.render()
        assert '<section class="removed"' in markup
        assert parse_fields(markup)["items_2"] == ["R-N"]

    def test_removed_item_does_not_count_for_validity(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        eraser = list(order["items"])[1]
        postback = submit(run_form, order, order_view, form, parse_fields,
                          items_1="R-" + eraser.id.hex, **{"items.amount_1": "0"})
        assert postback.has_valid_value is True
        assert eraser.is_marked_for_removal
        assert list(order["items"])[1] is eraser

    def test_reorder_items(self, run_form, order, order_view, parse_fields):
        form = run_form(order, order_view)
        pencil, eraser = order["items"]
        postback = submit(run_form, order, order_view, form, parse_fields,
                          items_0=eraser.id.hex, items_1=pencil.id.hex,
                          **{"items.product_0": "Eraser", "items.amount_0": "1",
                             "items.product_1": "Pencil", "items.amount_1": "2"})
        assert postback.has_valid_value is True
        assert products(order) == ["Eraser", "Pencil"]
        assert pencil["amount"].value == 2

    def test_sortable_pane_renders_sort_values(self, run_form, order, order_view, parse_fields):
        order_view.panes[1] = ViewCollectionPane(title="Items", key="items", item_pane=order_view.panes[1].item_pane,
                                                 is_sortable=True)
        fields = parse_fields(run_form(order, order_view).render())
        assert fields["items_0::"] == ["0"]
        assert fields["items_1::"] == ["1"]
        assert 'data-is-sortable="1"' in run_form(order, order_view).render()

    def test_item_added_since_render_is_kept(self, run_form, order, order_view, parse_fields, new_line_item):
        form = run_form(order, order_view)
        fields = parse_fields(form.render())
        stapler = new_line_item("Stapler", 0, is_new=False)
        order["items"].add(stapler)

        postback = run_form(order, order_view, fields)
        # never submitted, so never validated
        assert postback.has_valid_value is None
        assert postback.panes[0].has_valid_value is True
        assert postback.panes[1].has_valid_value is None
        assert products(order) == ["Pencil", "Eraser", "Stapler"]
        assert parse_fields(postback.render())["items_2"] == [stapler.id.hex]

    def test_read_only_collection_is_not_changed(self, run_form, order, order_view, parse_fields):
        order["items"].is_read_only = True
        form = run_form(order, order_view)
        markup = form.render()
        assert "<template>" not in markup
        postback = submit(run_form, order, order_view, form, parse_fields, items_2="N")
        assert products(order) == ["Pencil", "Eraser"]
        assert postback.has_valid_value is True
