"""Tests for Meta objects and discriminator resolution."""

from __future__ import annotations

import pytest

from moysklad_client.errors import DecodeError, UnknownTypeError
from moysklad_client.meta import Meta, MetaType, resolve_type

HREF = "https://api.moysklad.ru/api/remap/1.2/entity/product/4f70c518-4d83-11e6-7a69-8f55000043bd"


class TestResolveType:
    """Test discriminator extraction."""

    def test_known_type_from_string(self):
        assert resolve_type("product") is MetaType.PRODUCT

    def test_known_type_from_meta(self):
        assert resolve_type(Meta(href=HREF, type="cashout")) is MetaType.CASH_OUT

    def test_unknown_type_raises(self):
        """Unknown strings are never mapped to a default."""
        with pytest.raises(UnknownTypeError) as exc_info:
            resolve_type("spaceship")
        assert exc_info.value.type_name == "spaceship"

    def test_missing_type_raises(self):
        with pytest.raises(UnknownTypeError):
            resolve_type(Meta(href=HREF))

    def test_unknown_type_is_decode_error(self):
        """UnknownTypeError can be handled as a DecodeError."""
        with pytest.raises(DecodeError):
            Meta(href=HREF, type="spaceship").meta_type


class TestMetaWire:
    """Test Meta JSON mapping."""

    def test_from_dict_reads_camel_case(self):
        meta = Meta.from_dict({
            "href": HREF,
            "metadataHref": "https://x/entity/product/metadata",
            "type": "product",
            "mediaType": "application/json",
            "uuidHref": "https://online.moysklad.ru/app/#good/edit?id=1",
        })
        assert meta.href == HREF
        assert meta.metadata_href == "https://x/entity/product/metadata"
        assert meta.uuid_href.endswith("id=1")
        assert meta.meta_type is MetaType.PRODUCT

    def test_paging_fields(self):
        meta = Meta.from_dict({"href": HREF, "type": "product", "size": 5, "limit": 2, "offset": 4, "nextHref": "n"})
        assert (meta.size, meta.limit, meta.offset, meta.next_href) == (5, 2, 4, "n")

    def test_missing_href_rejected(self):
        with pytest.raises(DecodeError):
            Meta.from_dict({"type": "product"})

    def test_non_integer_size_rejected(self):
        with pytest.raises(DecodeError):
            Meta.from_dict({"href": HREF, "size": "5"})

    def test_non_object_rejected(self):
        with pytest.raises(DecodeError):
            Meta.from_dict(["not", "an", "object"])

    def test_unknown_type_kept_verbatim(self):
        """Decoding never fails on an unknown type; the string is kept."""
        meta = Meta.from_dict({"href": HREF, "type": "spaceship"})
        assert meta.type == "spaceship"
        assert meta.is_known_type is False


class TestMetaReference:
    """Test the reference form used in request bodies."""

    def test_wrap_drops_paging_and_links(self):
        meta = Meta(
            href=HREF,
            type="product",
            metadata_href="https://x/metadata",
            uuid_href="https://online/x",
            size=10,
            limit=5,
            offset=0,
        )
        assert meta.wrap() == {
            "meta": {
                "href": HREF,
                "type": "product",
                "mediaType": "application/json",
                "metadataHref": "https://x/metadata",
            }
        }

    def test_with_paging_returns_copy(self):
        meta = Meta(href=HREF, type="product")
        paged = meta.with_paging(size=5, limit=2, offset=0)
        assert paged.size == 5
        assert meta.size is None
