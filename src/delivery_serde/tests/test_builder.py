import logging

import pytest

from ..exceptions import (
    InvalidResourceError,
    UnrecognizedResourceKindError,
)
from ..identity import IdentityKey, ResourceKind
from ..models import Asset, DeletedAsset, Entry, Link, ResourceArray, UnresolvedResource
from .testing import (
    SPACE_ID,
    asset_json,
    entry_json,
    example_transport,
    link_json,
    page_json,
)


class Cat(Entry):
    @property
    def name(self):
        return self["name"]


@pytest.fixture
def transport():
    return example_transport()


@pytest.fixture
def client(transport):
    from ..client import Client

    return Client(SPACE_ID, transport)


class TestResourceBuilder:
    @pytest.fixture
    def target(self, client):
        return client.builder

    @pytest.mark.parametrize(
        "data, expected",
        [
            ({"sys": {"type": "Space"}}, ResourceKind.SPACE),
            ({"sys": {"type": "ContentType"}}, ResourceKind.CONTENT_TYPE),
            ({"sys": {"type": "Entry"}}, ResourceKind.ENTRY),
            ({"sys": {"type": "Asset"}}, ResourceKind.ASSET),
            ({"sys": {"type": "DeletedEntry"}}, ResourceKind.DELETED_ENTRY),
            ({"sys": {"type": "DeletedAsset"}}, ResourceKind.DELETED_ASSET),
        ],
    )
    def test_determine_kind(self, target, data, expected):
        assert target.determine_kind(data) is expected

    @pytest.mark.parametrize(
        "data",
        [
            {"sys": {"type": "Unknown", "id": "x"}},
            {"sys": {"id": "x"}},
            {"fields": {}},
            {"sys": "Entry"},
        ],
    )
    def test_unrecognized_kind(self, target, data):
        with pytest.raises(UnrecognizedResourceKindError):
            target.build(data)

    def test_unrecognized_kind_carries_type(self, target):
        with pytest.raises(UnrecognizedResourceKindError) as e:
            target.build({"sys": {"type": "Unknown", "id": "x"}})
        assert e.value.kind == "Unknown"
        assert e.value.id == "x"
        assert "Unknown" in str(e.value)

    def test_missing_id(self, target):
        with pytest.raises(InvalidResourceError):
            target.build({"sys": {"type": "Asset"}})

    def test_not_an_object(self, target):
        with pytest.raises(InvalidResourceError):
            target.build(["not", "a", "document"])

    def test_build_registers_instance(self, target, client):
        entry = target.build(entry_json("nyancat", {"name": "Nyan Cat"}))
        assert isinstance(entry, Entry)
        assert client.repository.peek(IdentityKey.of("Entry", "nyancat", "en-US")) is entry

    def test_existing_instance_wins(self, target):
        first = target.build(entry_json("nyancat", {"name": "Nyan Cat"}))
        second = target.build(entry_json("nyancat", {"name": "Garfield"}))
        assert second is first
        assert first["name"] == "Nyan Cat"

    def test_locales_build_distinct_instances(self, target):
        en = target.build(entry_json("nyancat", {"name": "Nyan Cat"}, locale="en-US"))
        tlh = target.build(entry_json("nyancat", {"name": "Nyan vIghro'"}, locale="tlh"))
        assert en is not tlh
        assert tlh["name"] == "Nyan vIghro'"

    def test_failed_hydration_is_not_registered(self, target, client):
        with pytest.raises(InvalidResourceError):
            target.build(entry_json("nyancat", {"name": "Nyan Cat"}, locale=None))
        assert IdentityKey.of("Entry", "nyancat") not in client.repository

    def test_registered_entry_class(self, target):
        target.register_entry_class("cat", Cat)
        cat = target.build(entry_json("nyancat", {"name": "Nyan Cat"}))
        dog = target.build(entry_json("jake", {"name": "Jake"}, content_type="dog"))
        assert type(cat) is Cat
        assert cat.name == "Nyan Cat"
        assert type(dog) is Entry

    def test_register_entry_class_rejects_non_entries(self, target):
        with pytest.raises(TypeError):
            target.register_entry_class("cat", Asset)
        with pytest.raises(TypeError):
            target.register_entry_class("cat", object())

    def test_deleted_asset(self, target):
        deleted = target.build(
            {"sys": {"type": "DeletedAsset", "id": "nyancat", "deletedAt": "2014-08-11T08:30:42.559Z"}}
        )
        assert isinstance(deleted, DeletedAsset)
        assert deleted.identity_key() == IdentityKey.of("DeletedAsset", "nyancat")


class TestBuildArray:
    @pytest.fixture
    def target(self, client):
        return client.builder

    def test_page(self, target):
        page = target.build(
            page_json(
                [
                    entry_json("nyancat", {"name": "Nyan Cat"}),
                    entry_json("happycat", {"name": "Happy Cat"}),
                ],
                total=10,
            )
        )
        assert isinstance(page, ResourceArray)
        assert [item.id for item in page] == ["nyancat", "happycat"]
        assert page.total == 10
        assert page.skip == 0
        assert page.limit == 100
        assert page.unresolved == []

    def test_empty_page(self, target):
        page = target.build(page_json([]))
        assert len(page) == 0
        assert page.total == 0

    def test_partial_failure_yields_marker(self, target, caplog):
        with caplog.at_level(logging.WARNING):
            page = target.build(
                page_json(
                    [
                        entry_json("nyancat", {"name": "Nyan Cat"}),
                        {"sys": {"type": "Unknown", "id": "mystery"}},
                        entry_json("happycat", {"name": "Happy Cat"}),
                    ]
                )
            )
        assert len(page) == 3
        assert isinstance(page[0], Entry)
        assert isinstance(page[2], Entry)
        marker = page[1]
        assert isinstance(marker, UnresolvedResource)
        assert marker.kind == "Unknown"
        assert marker.id == "mystery"
        assert isinstance(marker.error, UnrecognizedResourceKindError)
        assert marker.data == {"sys": {"type": "Unknown", "id": "mystery"}}
        assert page.unresolved == [marker]
        assert "item 1" in caplog.text

    def test_invalid_item_yields_marker(self, target):
        page = target.build(
            page_json([entry_json("nyancat", {"name": "Nyan Cat"}, content_type="unicorn")])
        )
        assert isinstance(page[0], UnresolvedResource)
        assert isinstance(page[0].error, InvalidResourceError)

    @pytest.mark.parametrize(
        "broken",
        [
            dict(entry_json("b", {"name": "B"}), sys=dict(entry_json("b", {})["sys"], createdAt=12345)),
            dict(entry_json("b", {"name": "B"}), sys=dict(entry_json("b", {})["sys"], updatedAt=["2013"])),
            entry_json("b", {"bestFriend": {"sys": {"type": "Link", "id": "x"}}}),
            entry_json("b", {"friends": [{"sys": {"type": "Link", "linkType": "Entry"}}]}),
        ],
    )
    def test_malformed_item_yields_marker(self, target, client, broken):
        page = target.build(
            page_json(
                [
                    entry_json("a", {"name": "A"}),
                    broken,
                    entry_json("c", {"name": "C"}),
                ]
            )
        )
        assert len(page) == 3
        assert [item.id for item in page] == ["a", "b", "c"]
        assert isinstance(page[0], Entry)
        assert isinstance(page[1], UnresolvedResource)
        assert isinstance(page[1].error, InvalidResourceError)
        assert isinstance(page[2], Entry)
        assert IdentityKey.of("Entry", "b", "en-US") not in client.repository

    def test_items_must_be_an_array(self, target):
        with pytest.raises(InvalidResourceError):
            target.build({"sys": {"type": "Array"}, "items": "nyancat"})

    def test_includes_are_registered(self, target, client, transport):
        page = target.build(
            page_json(
                [
                    entry_json(
                        "nyancat",
                        {
                            "name": "Nyan Cat",
                            "bestFriend": link_json("Entry", "happycat"),
                            "image": link_json("Asset", "nyancat"),
                        },
                    )
                ],
                includes={
                    "Entry": [entry_json("happycat", {"name": "Happy Cat"})],
                    "Asset": [asset_json("nyancat")],
                },
            )
        )
        assert len(page) == 1
        nyancat = page[0]
        assert nyancat.fields["bestFriend"] == {"en-US": Link("Entry", "happycat")}
        happycat = nyancat["bestFriend"]
        assert happycat.id == "happycat"
        assert happycat is client.repository.get("Entry", "happycat", "en-US")
        assert nyancat["image"].title == "Nyan Cat"
        assert not any("/entries" in p or "/assets" in p for p in transport.paths)

    def test_broken_include_is_skipped(self, target, client):
        page = target.build(
            page_json(
                [entry_json("nyancat", {"name": "Nyan Cat"})],
                includes={"Entry": [{"sys": {"type": "Unknown", "id": "x"}}]},
            )
        )
        assert len(page) == 1
        assert page.unresolved == []
