"""Tests for identity tokens of collection sections."""
import uuid

import pytest

from formstate import ObjectCollectionField, RemovalType
from formstate.section_identity import (
    IdentityKind,
    IdentityToken,
    SectionIdentityResolver,
    decode_token,
    encode_token,
    select_token,
)


@pytest.fixture
def collection(new_line_item):
    return ObjectCollectionField("items", new_line_item, [
        new_line_item("Pencil", is_new=False),
        new_line_item("Eraser", is_new=False),
    ])


class TestDecodeToken:

    @pytest.mark.parametrize("raw, kind", [
        ("N", IdentityKind.NEW_FROM_POSTBACK),
        ("R-N", IdentityKind.REMOVED_NEW_FROM_POSTBACK),
        ("P", IdentityKind.ROUND_TRIPPED_NEW),
    ])
    def test_sentinels(self, raw, kind):
        token = decode_token(raw)
        assert token.kind is kind
        assert token.object_id is None

    def test_existing_and_removed_existing(self):
        object_id = uuid.uuid4()
        assert decode_token(object_id.hex) == IdentityToken(IdentityKind.EXISTING, object_id)
        assert decode_token("R-" + object_id.hex) == IdentityToken(IdentityKind.REMOVED_EXISTING, object_id)

    @pytest.mark.parametrize("raw", ["", None, "not-an-id", "R-zzz"])
    def test_unparseable_tokens_decode_to_none(self, raw):
        assert decode_token(raw) is None

    def test_str_is_inverse_of_decode(self):
        object_id = uuid.uuid4()
        for raw in ("N", "R-N", "P", object_id.hex, "R-" + object_id.hex):
            assert str(decode_token(raw)) == raw


class TestSelectToken:

    def test_single_value(self):
        assert select_token(["abc"]) == "abc"

    def test_removal_wins(self):
        assert select_token(["N", "R-N", "P"]) == "R-N"

    def test_new_wins_over_first(self):
        assert select_token(["P", "N"]) == "N"

    def test_first_otherwise(self):
        assert select_token(["P", "P"]) == "P"

    def test_empty(self):
        assert select_token([]) is None


class TestEncodeToken:

    def test_existing(self, new_line_item):
        item = new_line_item(is_new=False)
        assert encode_token(item, is_new_from_postback=False) == item.id.hex
        item.removal = RemovalType.CASCADE
        assert encode_token(item, is_new_from_postback=False) == "R-" + item.id.hex

    def test_new(self, new_line_item):
        item = new_line_item()
        assert encode_token(item, is_new_from_postback=True) == "N"
        assert encode_token(item, is_new_from_postback=False) == "P"
        item.removal = RemovalType.CASCADE
        assert encode_token(item, is_new_from_postback=True) == "R-N"


class TestSectionIdentityResolver:

    def test_new_is_appended(self, collection):
        resolved = SectionIdentityResolver(collection).resolve(decode_token("N"))
        assert resolved.is_new_from_postback
        assert resolved.previous_index == 2
        assert collection.items[-1] is resolved.presentable_object

    def test_removed_new_is_not_appended(self, collection):
        resolved = SectionIdentityResolver(collection).resolve(decode_token("R-N"))
        assert resolved.presentable_object.removal is RemovalType.CASCADE
        assert resolved.previous_index == -1
        assert len(collection) == 2

    def test_adding_not_allowed(self, collection):
        resolver = SectionIdentityResolver(collection, allows_adding=False)
        assert resolver.resolve(decode_token("N")) is None
        assert resolver.resolve(decode_token("R-N")) is None
        assert len(collection) == 2

    def test_existing_reports_its_index(self, collection):
        second = collection.items[1]
        resolved = SectionIdentityResolver(collection).resolve(decode_token(second.id.hex))
        assert resolved.presentable_object is second
        assert resolved.previous_index == 1

    def test_removed_existing_is_marked_not_repositioned(self, collection):
        second = collection.items[1]
        resolved = SectionIdentityResolver(collection).resolve(decode_token("R-" + second.id.hex))
        assert second.removal is RemovalType.CASCADE
        assert resolved.previous_index == -1
        assert second in collection.items

    def test_removal_not_allowed_keeps_object(self, collection):
        second = collection.items[1]
        resolved = SectionIdentityResolver(collection, allows_removing=False).resolve(
            decode_token("R-" + second.id.hex))
        assert second.removal is RemovalType.NONE
        assert resolved.previous_index == 1

    def test_unknown_id_resolves_to_none(self, collection):
        assert SectionIdentityResolver(collection).resolve(decode_token(uuid.uuid4().hex)) is None

    def test_round_tripped_new_matches_by_ordinal(self, collection, new_line_item):
        first_prepared = new_line_item("Ruler")
        second_prepared = new_line_item("Sharpener")
        collection.add(first_prepared)
        collection.add(second_prepared)
        resolver = SectionIdentityResolver(collection)
        assert resolver.resolve(decode_token("P")).presentable_object is first_prepared
        # an item added by "N" in between must not be claimed by a later "P"
        resolver.resolve(decode_token("N"))
        assert resolver.resolve(decode_token("P")).presentable_object is second_prepared
        assert resolver.resolve(decode_token("P")) is None
