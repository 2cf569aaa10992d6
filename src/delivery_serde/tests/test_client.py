import json

import pytest

from ..exceptions import (
    InvalidLinkTypeError,
    InvalidResourceError,
    ResourceNotFoundError,
    SpaceMismatchError,
)
from ..models import Asset, ContentType, Entry, Link, ResourceArray, Space, UnresolvedResource
from .testing import (
    SPACE_ID,
    asset_json,
    entry_json,
    example_transport,
    link_json,
    page_json,
)

NYANCAT_FIELDS = {
    "name": "Nyan Cat",
    "likes": ["rainbows", "fish"],
    "bestFriend": link_json("Entry", "happycat"),
    "birthday": "2011-04-04T22:00:00Z",
    "image": link_json("Asset", "nyancat"),
}


@pytest.fixture
def transport():
    return (
        example_transport()
        .add_entry(entry_json("nyancat", NYANCAT_FIELDS))
        .add_entry(entry_json("happycat", {"name": "Happy Cat", "bestFriend": link_json("Entry", "nyancat")}))
        .add_asset(asset_json("nyancat"))
        .add(
            f"/spaces/{SPACE_ID}/entries",
            page_json(
                [entry_json("nyancat", NYANCAT_FIELDS)],
                includes={"Asset": [asset_json("nyancat")]},
            ),
        )
    )


@pytest.fixture
def target(transport):
    from ..client import Client

    return Client(SPACE_ID, transport)


def assert_same_fields(a: Entry, b: Entry) -> None:
    assert type(a) is type(b)
    assert a.sys == b.sys
    assert a.sys.space.id == b.sys.space.id
    assert a.sys.content_type.id == b.sys.content_type.id
    assert a.fields == b.fields


class TestClientOptions:
    def test_defaults(self, target):
        assert target.default_locale is None
        assert target.api == "delivery"
        assert target.options.cache is None

    def test_keyword_overrides(self, transport):
        from ..client import Client, ClientOptions

        client = Client(SPACE_ID, transport, ClientOptions(default_locale="tlh"), preview=True)
        assert client.default_locale == "tlh"
        assert client.api == "preview"

    def test_unknown_option(self, transport):
        from ..client import Client

        with pytest.raises(TypeError):
            Client(SPACE_ID, transport, colour="blue")


class TestGetters:
    def test_get_space(self, target, transport):
        space = target.get_space()
        assert isinstance(space, Space)
        assert target.get_space() is space
        assert transport.paths == [f"/spaces/{SPACE_ID}"]

    def test_get_content_type(self, target):
        content_type = target.get_content_type("cat")
        assert isinstance(content_type, ContentType)
        assert target.get_content_type("cat") is content_type
        with pytest.raises(ResourceNotFoundError):
            target.get_content_type("unicorn")

    def test_get_content_types(self, target):
        content_types = target.get_content_types()
        assert [ct.id for ct in content_types] == ["cat", "dog"]
        assert content_types[0] is target.get_content_type("cat")

    def test_get_entry_requests_effective_locale(self, target, transport):
        target.get_entry("nyancat")
        assert (f"/spaces/{SPACE_ID}/entries/nyancat", {"locale": "en-US"}) in transport.requests

    def test_get_entries_defaults_locale(self, target, transport):
        target.get_entries({"content_type": "cat"})
        assert (
            f"/spaces/{SPACE_ID}/entries",
            {"content_type": "cat", "locale": "en-US"},
        ) in transport.requests
        target.get_entries({"locale": "tlh"})
        assert (f"/spaces/{SPACE_ID}/entries", {"locale": "tlh"}) in transport.requests

    def test_get_asset(self, target):
        asset = target.get_asset("nyancat")
        assert isinstance(asset, Asset)
        assert asset.file.file_name == "Nyan_cat_250px_frame.png"
        assert target.get_asset("nyancat", "en-US") is asset

    def test_get_assets(self, target, transport):
        transport.add(f"/spaces/{SPACE_ID}/assets", page_json([asset_json("nyancat")]))
        assets = target.get_assets()
        assert assets[0] is target.get_asset("nyancat")

    def test_get_entry_of_wrong_kind(self, target, transport):
        imposter = asset_json("nyancat")
        imposter["sys"]["id"] = "imposter"
        transport.add_entry(imposter)
        with pytest.raises(InvalidResourceError):
            target.get_entry("imposter")

    def test_default_locale_wildcard(self, transport):
        from ..client import Client

        transport.add_entry(
            entry_json("nyancat", {"name": {"en-US": "Nyan Cat", "tlh": "Nyan vIghro'"}}, locale=None)
        )
        client = Client(SPACE_ID, transport, default_locale="*")
        entry = client.get_entry("nyancat")
        assert (f"/spaces/{SPACE_ID}/entries/nyancat", {"locale": "*"}) in transport.requests
        assert entry.get("name", "tlh") == "Nyan vIghro'"
        assert client.get_entry("nyancat") is entry
        assert len([p for p in transport.paths if p.endswith("/entries/nyancat")]) == 1


class TestIdentity:
    def test_same_instance_across_requests(self, target, transport):
        first = target.get_entry("nyancat")
        assert target.get_entry("nyancat") is first
        assert target.get_entry("nyancat", "en-US") is first
        assert transport.paths.count(f"/spaces/{SPACE_ID}/entries/nyancat") == 1

    def test_same_instance_across_pages(self, target):
        first = target.get_entry("nyancat")
        page = target.get_entries()
        assert page[0] is first
        assert target.get_entries()[0] is first

    def test_same_instance_from_parsed_documents(self, target):
        first = target.get_entry("nyancat")
        assert target.parse_json(target.to_json(first)) is first

    def test_locales_are_distinct(self, target, transport):
        en = target.get_entry("nyancat", "en-US")
        transport.add_entry(entry_json("nyancat", {"name": "Nyan vIghro'"}, locale="tlh"))
        tlh = target.get_entry("nyancat", "tlh")
        assert en is not tlh
        assert tlh["name"] == "Nyan vIghro'"


class TestLinks:
    def test_resolve_link(self, target):
        asset = target.resolve_link(Link("Asset", "nyancat"))
        assert asset is target.get_asset("nyancat")
        entry = target.resolve_link(Link("Entry", "nyancat"), "en-US")
        assert entry is target.get_entry("nyancat")

    @pytest.mark.parametrize("link_type", ["Space", "ContentType", "Unicorn"])
    def test_invalid_link_type(self, target, transport, link_type):
        with pytest.raises(InvalidLinkTypeError) as e:
            target.resolve_link(Link(link_type, "nyancat"))
        assert e.value.link_type == link_type
        assert transport.requests == []

    def test_resolve_fields(self, target):
        nyancat = target.get_entry("nyancat")
        assert nyancat["image"] is target.get_asset("nyancat")
        assert nyancat["bestFriend"] is target.get_entry("happycat")

    def test_cyclic_links_fetched_lazily(self, target, transport):
        nyancat = target.get_entry("nyancat")
        happycat = nyancat["bestFriend"]
        assert happycat["bestFriend"] is nyancat
        assert happycat["bestFriend"]["bestFriend"] is happycat
        assert transport.paths.count(f"/spaces/{SPACE_ID}/entries/nyancat") == 1
        assert transport.paths.count(f"/spaces/{SPACE_ID}/entries/happycat") == 1

    def test_cyclic_links_in_one_page(self, target, transport):
        page = target.parse_json(
            json.dumps(
                page_json(
                    [entry_json("a", {"name": "A", "bestFriend": link_json("Entry", "b")})],
                    includes={
                        "Entry": [entry_json("b", {"name": "B", "bestFriend": link_json("Entry", "a")})]
                    },
                )
            )
        )
        a = page[0]
        assert a.get("bestFriend").get("bestFriend") is a
        assert not any("/entries" in p for p in transport.paths)

    def test_self_link(self, target):
        me = target.parse_json(
            json.dumps(entry_json("narcissus", {"bestFriend": link_json("Entry", "narcissus")}))
        )
        assert me["bestFriend"] is me
        assert json.loads(target.to_json(me))["fields"]["bestFriend"] == link_json(
            "Entry", "narcissus"
        )


class TestRoundTrip:
    @pytest.fixture
    def fresh(self, transport):
        from ..client import Client

        return Client(SPACE_ID, transport)

    def test_entry(self, target, fresh):
        original = target.get_entry("nyancat")
        revived = fresh.parse_json(target.to_json(original))
        assert revived is not original
        assert_same_fields(original, revived)
        assert revived["birthday"] == original["birthday"]

    def test_all_locale_entry(self, target, fresh):
        original = target.parse_json(
            json.dumps(
                entry_json(
                    "nyancat",
                    {"name": {"en-US": "Nyan Cat", "tlh": "Nyan vIghro'"}},
                    locale=None,
                )
            )
        )
        revived = fresh.parse_json(target.to_json(original))
        assert_same_fields(original, revived)
        assert revived.get("name", "tlh") == "Nyan vIghro'"

    def test_asset(self, target, fresh):
        original = target.get_asset("nyancat")
        revived = fresh.parse_json(target.to_json(original))
        assert revived.sys == original.sys
        assert revived.localized_fields == original.localized_fields

    def test_space_and_content_type(self, target, fresh):
        space = fresh.parse_json(target.to_json(target.get_space()))
        assert [locale.code for locale in space.locales] == ["en-US", "tlh"]
        cat = target.get_content_type("cat")
        revived = fresh.parse_json(target.to_json(cat))
        assert revived.fields == cat.fields
        assert revived.display_field == cat.display_field

    def test_page(self, target, fresh):
        page = target.parse_json(
            json.dumps(
                page_json(
                    [
                        entry_json("nyancat", {"name": "Nyan Cat"}),
                        {"sys": {"type": "Unknown", "id": "mystery", "space": link_json("Space", SPACE_ID)}},
                    ],
                    total=7,
                )
            )
        )
        revived = fresh.parse_json(target.to_json(page))
        assert isinstance(revived, ResourceArray)
        assert (revived.total, revived.skip, revived.limit) == (7, 0, 100)
        assert_same_fields(page[0], revived[0])
        assert isinstance(revived[1], UnresolvedResource)
        assert revived[1].id == "mystery"

    def test_to_json_is_json(self, target):
        data = json.loads(target.to_json(target.get_entry("nyancat")))
        assert data["sys"]["contentType"] == link_json("ContentType", "cat")
        assert data["sys"]["createdAt"] == "2013-06-27T22:46:12.852000Z"
        assert data["fields"]["name"] == "Nyan Cat"
        assert data["fields"]["birthday"] == "2011-04-04T22:00:00Z"


class TestSpaceMismatch:
    def test_entry_of_another_space(self, target):
        target.get_entry("nyancat")
        before = len(target.repository)
        with pytest.raises(SpaceMismatchError) as e:
            target.parse_json(json.dumps(entry_json("grumpycat", {}, space_id="other")))
        assert e.value.expected == SPACE_ID
        assert e.value.actual == "other"
        assert len(target.repository) == before

    def test_space_of_another_id(self, target):
        with pytest.raises(SpaceMismatchError):
            target.parse_json(json.dumps({"sys": {"type": "Space", "id": "other"}}))
        assert len(target.repository) == 0

    def test_page_of_another_space(self, target):
        with pytest.raises(SpaceMismatchError):
            target.parse_json(json.dumps(page_json([entry_json("grumpycat", {}, space_id="other")])))
        assert len(target.repository) == 0

    def test_document_without_space(self, target):
        with pytest.raises(SpaceMismatchError) as e:
            target.parse_json(json.dumps({"sys": {"type": "Entry", "id": "nyancat"}}))
        assert e.value.actual is None

    @pytest.mark.parametrize(
        "document",
        [
            {"sys": {"type": "Entry", "id": "nyancat", "space": SPACE_ID}},
            {"sys": {"type": "Entry", "id": "nyancat", "space": {"sys": SPACE_ID}}},
            page_json([{"sys": {"type": "Entry", "id": "nyancat", "space": SPACE_ID}}]),
            page_json(["nyancat"]),
            {"sys": "Entry"},
        ],
    )
    def test_malformed_space_link(self, target, document):
        with pytest.raises(SpaceMismatchError) as e:
            target.parse_json(json.dumps(document))
        assert e.value.actual is None
        assert len(target.repository) == 0

    def test_empty_page(self, target):
        page = target.parse_json(json.dumps(page_json([])))
        assert len(page) == 0


def test_register_entry_class(target):
    class Cat(Entry):
        pass

    target.register_entry_class("cat", Cat)
    assert type(target.get_entry("nyancat")) is Cat
