"""
Integration tests for entity services using MockMoySkladService.

Tests the full flow: service -> endpoint building block -> RequestBuilder ->
mock HTTP layer -> decoded entities.
"""

from __future__ import annotations

import json
import uuid

import pytest

from moysklad_client import MoySkladClient, entity_service, set_default_client
from moysklad_client.entities import (
    AssortmentSettings,
    Attribute,
    CashOut,
    CustomEntity,
    CustomEntityElement,
    Enter,
    EnterPosition,
    EntityMetadata,
    File,
    NamedFilter,
    Product,
    Publication,
    State,
    TrackingCode,
)
from moysklad_client.errors import NotFoundError
from moysklad_client.meta import Meta
from moysklad_client.params import Params
from moysklad_client.services import EntityService, build_service

from tests.fixtures.mock_service import BASE_URL, MockMoySkladService, make_meta


class TestListPaging:
    """Test paged reads against a 5-item collection."""

    def test_limit_two(self, payments_service, make_client):
        client = make_client(payments_service)
        page = client.cash_out.get_list(Params().with_limit(2).with_offset(0))

        assert len(page) == 2
        assert page.meta.size == 5
        assert page.meta.offset == 0
        assert all(isinstance(row, CashOut) for row in page)
        assert page.has_more()

    def test_last_page(self, payments_service, make_client):
        client = make_client(payments_service)
        page = client.cash_out.get_list(Params().with_limit(2).with_offset(4))

        assert len(page) == 1
        assert page.has_more() is False

    def test_walk_all_pages(self, payments_service, make_client):
        """Following next_params visits every row once, in order."""
        client = make_client(payments_service)
        params = Params().with_limit(2)
        names: list[str] = []

        page = client.cash_out.get_list(params)
        names.extend(row.name for row in page)
        while page.has_more():
            page = client.cash_out.get_list(page.next_params(params))
            names.extend(row.name for row in page)

        assert names == ["00001", "00002", "00003", "00004", "00005"]

    def test_same_window_same_rows(self, payments_service, make_client):
        """Re-reading an unchanged collection gives identical pages."""
        client = make_client(payments_service)
        params = Params().with_limit(2).with_offset(2)
        assert client.cash_out.get_list(params) == client.cash_out.get_list(params)

    def test_filter(self, payments_service, make_client):
        client = make_client(payments_service)
        page = client.cash_out.get_list(Params().with_filter_equals("name", "00003"))
        assert [row.name for row in page] == ["00003"]


class TestCrud:
    """Test single-entity operations."""

    def test_create_get_update_delete(self, payments_service, make_client):
        client = make_client(payments_service)

        created = client.cash_out.create(CashOut(name="0100", sum=250.0))
        assert isinstance(created.meta, Meta)

        fetched = client.cash_out.get_by_id(created.id)
        assert fetched == created

        updated = client.cash_out.update(created.id, CashOut(description="rent"))
        assert updated.description == "rent"
        assert updated.sum == 250.0

        assert client.cash_out.delete(created.id) is True
        with pytest.raises(NotFoundError):
            client.cash_out.get_by_id(created.id)
        assert client.cash_out.delete(created.id, missing_ok=True) is False

    def test_move_to_trash(self, payments_service, make_client):
        client = make_client(payments_service)
        target = payments_service.collections["entity/cashout"][0]

        assert client.cash_out.move_to_trash(target["id"]) is True
        assert payments_service.get_calls("/trash")[-1][0] == "POST"

    def test_sync_id(self, payments_service, make_client):
        client = make_client(payments_service)
        sync_id = str(uuid.uuid4())
        payments_service.add_entity("entity/cashout", {"name": "synced", "syncId": sync_id})

        fetched = client.cash_out.get_by_sync_id(sync_id)
        assert fetched.name == "synced"
        assert str(fetched.sync_id) == sync_id

        assert client.cash_out.delete_by_sync_id(sync_id) is True
        assert client.cash_out.delete_by_sync_id(sync_id, missing_ok=True) is False


class TestSubResources:
    """Test metadata, attributes, states, files, publications, named filters, positions."""

    def _enter_id(self, svc: MockMoySkladService) -> str:
        return svc.collections["entity/enter"][0]["id"]

    def test_metadata(self, documents_service, make_client):
        client = make_client(documents_service)
        metadata = client.enter.get_metadata()

        assert isinstance(metadata, EntityMetadata)
        assert metadata.create_shared is False
        assert isinstance(metadata.attributes[0], Attribute)
        assert metadata.states[0].name == "New"

    def test_attributes(self, documents_service, make_client):
        client = make_client(documents_service)
        attributes = client.enter.attributes

        listed = attributes.list()
        assert [a.name for a in listed] == ["Warehouse note"]

        created = attributes.create(Attribute(name="Driver", type="string"))
        assert attributes.get(created.id).name == "Driver"
        assert attributes.update(created.id, Attribute(required=True)).required is True

        many = attributes.create_many([Attribute(name="A", type="long"), Attribute(name="B", type="long")])
        assert [item.value.name for item in many] == ["A", "B"]

        removed = attributes.delete_many([many[0].value, many[1].value])
        assert removed.ok
        assert attributes.delete(created.id) is True

    def test_states(self, documents_service, make_client):
        client = make_client(documents_service)
        states = client.enter.states

        created = states.create(State(name="Done", color=8825440))
        assert states.get(created.id).color == 8825440
        assert states.update(created.id, State(name="Closed")).name == "Closed"

        result = states.create_or_update_many([State(name="Draft"), created])
        assert result.ok
        assert isinstance(result[1].value, State)
        assert states.delete(created.id) is True

    def test_files(self, documents_service, make_client):
        client = make_client(documents_service)
        enter_id = self._enter_id(documents_service)

        files = client.enter.files.create(enter_id, File(filename="scan.pdf", content="JVBERi0="))
        assert isinstance(files[0], File)
        assert client.enter.files.list(enter_id).size == 1

        result = client.enter.files.delete_many(enter_id, files)
        assert result.ok
        assert client.enter.files.list(enter_id).size == 0

    def test_publications(self, documents_service, make_client):
        client = make_client(documents_service)
        enter_id = self._enter_id(documents_service)
        template = Meta(href=f"{BASE_URL}/entity/enter/metadata/customtemplate/1", type="customtemplate")

        publication = client.enter.publications.publish(enter_id, template)

        assert isinstance(publication, Publication)
        request = documents_service.requests[-1]
        assert request.url.path.endswith(f"/entity/enter/{enter_id}/publications")
        assert b'"template":{"meta"' in request.content
        assert client.enter.publications.get(enter_id, publication.id).id == publication.id
        assert len(client.enter.publications.list(enter_id)) == 1
        assert client.enter.publications.delete(enter_id, publication.id) is True

    def test_named_filters(self, documents_service, make_client):
        client = make_client(documents_service)
        filters = client.enter.named_filters.list()

        assert isinstance(filters.rows[0], NamedFilter)
        assert client.enter.named_filters.get(filters.rows[0].id).name == "Big entries"

    def test_positions(self, documents_service, make_client):
        client = make_client(documents_service)
        enter_id = self._enter_id(documents_service)
        positions = client.enter.positions
        product = {"meta": make_meta("entity/product/1", "product")}

        created = positions.create(enter_id, EnterPosition(quantity=2.0, price=1500.0, assortment=product))
        assert isinstance(created, EnterPosition)

        many = positions.create_many(enter_id, [EnterPosition(quantity=1.0), EnterPosition(quantity=3.0)])
        assert [item.value.quantity for item in many] == [1.0, 3.0]

        listed = positions.list(enter_id, Params().with_limit(10))
        assert len(listed) == 3

        assert positions.get(enter_id, created.id).price == 1500.0
        assert positions.update(enter_id, created.id, EnterPosition(quantity=5.0)).quantity == 5.0
        assert positions.delete(enter_id, created.id) is True

    def test_position_tracking_codes(self, documents_service, make_client):
        client = make_client(documents_service)
        enter_id = self._enter_id(documents_service)
        positions = client.enter.positions
        position = positions.create(enter_id, EnterPosition(quantity=2.0))
        path = f"entity/enter/{enter_id}/positions/{position.id}/trackingCodes"
        documents_service.add_collection(path, "trackingcode")

        codes = [
            TrackingCode(cis="010463003407001221SxMGorvNuq6Wk", type="trackingcode"),
            TrackingCode(cis="010463003407001221CEoXhVzXiDwLm", type="trackingcode"),
        ]
        created = positions.create_or_update_tracking_codes(enter_id, position.id, codes)
        assert created.ok
        assert [item.value.cis for item in created] == [code.cis for code in codes]

        listed = positions.tracking_codes(enter_id, position.id)
        assert all(isinstance(code, TrackingCode) for code in listed)
        assert listed.size == 2

        removed = positions.delete_tracking_codes(enter_id, position.id, codes[:1])
        assert removed.ok
        assert removed[0].value is codes[0]
        request = documents_service.requests[-1]
        assert request.url.path.endswith(f"/{path}/delete")
        assert json.loads(request.content) == [{"cis": codes[0].cis, "type": "trackingcode"}]
        assert [code.cis for code in positions.tracking_codes(enter_id, position.id)] == [codes[1].cis]

    def test_capabilities_follow_entity(self, make_client):
        client = make_client(MockMoySkladService())
        assert client.product.states is None
        assert client.product.publications is None
        assert client.product.positions is None
        assert client.variant.files is None
        assert client.cash_out.positions is None
        assert client.enter.positions is not None


class TestAssortment:
    """Test the assortment service."""

    def test_get_returns_envelopes(self, assortment_service, make_client):
        client = make_client(assortment_service)
        page = client.assortment.get()

        assert [row.type for row in page] == ["product", "variant", "bundle", "service", "consignment"]
        product = page.rows[0].as_product()
        assert isinstance(product, Product)
        assert product.weight == 4.5
        assert page.rows[0].as_bundle() is None
        assert page.rows[2].as_bundle().article == "SET-1"
        assert page.rows[4].as_consignment().label == "lot 7"

    def test_delete_many_mixed(self, assortment_service, make_client):
        client = make_client(assortment_service)
        page = client.assortment.get()

        result = client.assortment.delete_many([page.rows[0], page.rows[2].as_bundle(), page.rows[3].meta])

        assert result.ok
        assert len(assortment_service.collections["entity/assortment"]) == 2

    def test_settings(self, assortment_service, make_client):
        client = make_client(assortment_service)
        settings = client.assortment.get_settings()

        assert isinstance(settings, AssortmentSettings)
        assert settings.created_shared is True

        settings.created_shared = False
        updated = client.assortment.update_settings(settings)
        assert updated.created_shared is False
        assert updated.barcode_rules == {"fillEAN13Barcode": True}


class TestCustomEntity:
    """Test user-defined catalogues and their elements."""

    def test_catalogue_and_elements(self, make_client):
        svc = MockMoySkladService()
        svc.add_collection("entity/customentity", "customentity")
        client = make_client(svc)

        catalogue = client.custom_entity.create(CustomEntity(name="Brands"))
        svc.add_collection(f"entity/customentity/{catalogue.id}", "customentity")

        element = client.custom_entity.create_element(catalogue.id, CustomEntityElement(name="Acme"))
        assert client.custom_entity.get_element(catalogue.id, element.id).name == "Acme"

        renamed = client.custom_entity.update_element(catalogue.id, element.id, CustomEntityElement(name="ACME"))
        assert renamed.name == "ACME"
        assert [e.name for e in client.custom_entity.get_elements(catalogue.id)] == ["ACME"]

        assert client.custom_entity.delete_element(catalogue.id, element.id) is True
        assert client.custom_entity.update(catalogue.id, CustomEntity(name="Makers")).name == "Makers"
        assert client.custom_entity.delete(catalogue.id) is True


class TestClientServices:
    """Test service construction on the client."""

    def test_services_are_cached(self, make_client):
        client = make_client(MockMoySkladService())
        assert client.cash_out is client.cash_out
        assert client.entity_service("cashout") is client.cash_out
        assert client.assortment is client.assortment

    def test_service_entities(self, make_client):
        client = make_client(MockMoySkladService())
        assert client.enter.entity is Enter
        assert client.service.uri == "entity/service"
        assert isinstance(build_service(client, "paymentout"), EntityService)

    def test_unknown_keyword(self, make_client):
        client = make_client(MockMoySkladService())
        with pytest.raises(KeyError):
            client.entity_service("spaceship")

    def test_default_client(self, payments_service, mock_config):
        with payments_service.patch_httpx():
            set_default_client(MoySkladClient(config=mock_config()))
            page = entity_service("cashout").get_list(Params().with_limit(1))
        assert len(page) == 1
