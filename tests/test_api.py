"""
Tests for odata_gw.api gateway.
"""

import pytest
from unittest.mock import MagicMock, patch

from fastapi.testclient import TestClient

from odata_gw.api.gateway import ODataGateway, create_app
from odata_gw.core.session import ODataUpstreamError


CONNECTION = {
    "url": "https://test.example.com/odata/Service.svc",
    "username": "user",
    "password": "pass",
}


class StubGateway(ODataGateway):
    """Gateway whose sessions are mocks."""

    def __init__(self, **kwargs):
        kwargs.setdefault("api_key", "")
        super().__init__(**kwargs)
        self.sess = MagicMock()
        self.sess.__enter__.return_value = self.sess
        self.sess.base = "https://test.example.com/odata/Service.svc/"
        self.calls = []

    def build_session(self, url, username, password):
        self.calls.append((url, username, password))
        return self.sess


@pytest.fixture
def gateway():
    return StubGateway(max_pages=2)


@pytest.fixture
def client(gateway):
    return TestClient(create_app(gateway))


class TestHealth:

    def test_health(self, client):
        r = client.get("/health")
        assert r.status_code == 200
        assert r.json()["ok"] is True


class TestMetadataEndpoint:

    def test_all_entity_sets(self, client, gateway, sample_metadata_xml):
        gateway.sess.get_text.return_value = sample_metadata_xml

        r = client.post("/api/odata/metadata", json=CONNECTION)

        assert r.status_code == 200
        body = r.json()
        assert list(body.keys()) == ["Products", "Categories"]
        assert body["Products"] == [
            {"name": "ID", "type": "Edm.Int32", "maxLength": None},
            {"name": "Code", "type": "Edm.String", "maxLength": 256},
            {"name": "Price", "type": "Edm.Decimal", "maxLength": None},
        ]
        assert gateway.calls == [(CONNECTION["url"], "user", "pass")]

    def test_single_entity_set(self, client, gateway, sample_metadata_xml):
        gateway.sess.get_text.return_value = sample_metadata_xml

        r = client.post("/api/odata/metadata", json={**CONNECTION, "entitySet": "products"})

        assert r.status_code == 200
        assert list(r.json().keys()) == ["Products"]

    def test_snake_case_field_accepted(self, client, gateway, sample_metadata_xml):
        gateway.sess.get_text.return_value = sample_metadata_xml

        r = client.post("/api/odata/metadata", json={**CONNECTION, "entity_set": "Categories"})

        assert list(r.json().keys()) == ["Categories"]

    def test_unknown_entity_set_is_404(self, client, gateway, sample_metadata_xml):
        gateway.sess.get_text.return_value = sample_metadata_xml

        r = client.post("/api/odata/metadata", json={**CONNECTION, "entitySet": "NoSuchSet"})

        assert r.status_code == 404
        assert r.json()["detail"]["requested"] == "NoSuchSet"

    def test_malformed_metadata_is_400(self, client, gateway):
        gateway.sess.get_text.return_value = "<edmx:Edmx><Schema>"

        r = client.post("/api/odata/metadata", json=CONNECTION)

        assert r.status_code == 400
        assert "Failed to parse metadata XML" in r.json()["detail"]["error"]

    def test_upstream_error_is_502(self, client, gateway):
        gateway.sess.get_text.side_effect = ODataUpstreamError(
            401, "Unauthorized", "https://test.example.com/odata/Service.svc/$metadata"
        )

        r = client.post("/api/odata/metadata", json=CONNECTION)

        assert r.status_code == 502
        assert r.json()["detail"]["upstream_status"] == 401

    @pytest.mark.parametrize("field", ["url", "username", "password"])
    def test_blank_connection_field_is_422(self, client, field):
        r = client.post("/api/odata/metadata", json={**CONNECTION, field: "  "})
        assert r.status_code == 422


class TestQueryEndpoint:

    def test_v4_records(self, client, gateway, sample_v4_response):
        gateway.sess.get_json_url.return_value = sample_v4_response

        r = client.post(
            "/api/odata/query",
            json={**CONNECTION, "entitySet": "Products", "queryOptions": "$top=2"},
        )

        assert r.status_code == 200
        assert r.json() == [{"ID": 1, "Name": "Bread"}, {"ID": 2, "Name": "Milk"}]
        gateway.sess.url_for.assert_called_once_with("Products", "$top=2")

    def test_v2_records(self, client, gateway, sample_v2_response):
        gateway.sess.get_json_url.return_value = sample_v2_response

        r = client.post("/api/odata/query", json={**CONNECTION, "entitySet": "Products"})

        assert [row["ID"] for row in r.json()] == ["001", "002"]

    def test_single_entity(self, client, gateway):
        gateway.sess.get_json_url.return_value = {"ID": 5}

        r = client.post("/api/odata/query", json={**CONNECTION, "entitySet": "Products(5)"})

        assert r.json() == [{"ID": 5}]

    def test_max_pages_is_capped(self, client, gateway):
        gateway.sess.get_json_url.side_effect = [
            {"value": [{"ID": 1}], "@odata.nextLink": "Products?$skiptoken=1"},
            {"value": [{"ID": 2}], "@odata.nextLink": "Products?$skiptoken=2"},
            {"value": [{"ID": 3}]},
        ]

        r = client.post(
            "/api/odata/query",
            json={**CONNECTION, "entitySet": "Products", "maxPages": 50},
        )

        assert r.json() == [{"ID": 1}, {"ID": 2}]
        assert gateway.sess.get_json_url.call_count == 2

    def test_missing_entity_set_is_422(self, client):
        r = client.post("/api/odata/query", json=CONNECTION)
        assert r.status_code == 422

    def test_upstream_error_is_502(self, client, gateway):
        gateway.sess.get_json_url.side_effect = ODataUpstreamError(500, "boom", "https://x")

        r = client.post("/api/odata/query", json={**CONNECTION, "entitySet": "Products"})

        assert r.status_code == 502

    def test_unexpected_error_is_500(self, gateway):
        gateway.sess.get_json_url.side_effect = KeyError("unexpected")
        client = TestClient(create_app(gateway), raise_server_exceptions=False)

        r = client.post("/api/odata/query", json={**CONNECTION, "entitySet": "Products"})

        assert r.status_code == 500
        assert r.json()["error"] == "internal_server_error"


class TestApiKey:

    def test_missing_key_rejected(self, sample_metadata_xml):
        gw = StubGateway(api_key="secret")
        gw.sess.get_text.return_value = sample_metadata_xml
        client = TestClient(create_app(gw))

        assert client.post("/api/odata/metadata", json=CONNECTION).status_code == 401
        r = client.post("/api/odata/metadata", json=CONNECTION, headers={"x-api-key": "secret"})
        assert r.status_code == 200


class TestODataGateway:

    def test_reads_environment(self, monkeypatch):
        monkeypatch.setenv("ODATA_INSECURE_TRUST_ALL", "true")
        monkeypatch.setenv("ODATA_TIMEOUT", "5")
        monkeypatch.setenv("ODATA_MAX_PAGES", "3")
        monkeypatch.setenv("ODATA_API_KEY", "k")

        gw = ODataGateway()

        assert gw.insecure_trust_all is True
        assert gw.timeout == 5.0
        assert gw.max_pages == 3
        assert gw.api_key == "k"

    def test_defaults(self, monkeypatch):
        for name in ("ODATA_INSECURE_TRUST_ALL", "ODATA_TIMEOUT", "ODATA_MAX_PAGES", "ODATA_API_KEY"):
            monkeypatch.delenv(name, raising=False)

        gw = ODataGateway()

        assert gw.insecure_trust_all is False
        assert gw.timeout == 60.0
        assert gw.max_pages == 10
        assert gw.api_key == ""

    @patch("odata_gw.core.session.requests.Session")
    def test_build_session(self, mock_session_class):
        mock_session_class.return_value = MagicMock()
        gw = ODataGateway(insecure_trust_all=True, timeout=7.0)

        sess = gw.build_session("https://svc/odata", "u", "p")

        assert sess.base == "https://svc/odata/"
        assert sess.verify is False
        assert sess.timeout == 7.0
        assert sess.cfg.auth.value == ("u", "p")
