"""Unit tests for registry_prune/registry_client.py"""

from unittest.mock import MagicMock

import pytest
import requests

from registry_prune.error_utils import ErrorKind, PruneError
from registry_prune.models import Status
from registry_prune.registry_client import RegistryClient, region_endpoint

ENDPOINT = "https://api.scaleway.com/registry/v1/regions/fr-par"

TAG = {
    "id": "t1",
    "name": "latest",
    "image_id": "i1",
    "status": "ready",
    "digest": "sha256:abc",
    "created_at": "2024-01-01T00:00:00Z",
    "updated_at": "2024-01-02T00:00:00Z",
}


def make_response(status_code=200, body=None, json_error=False, text=""):
    response = MagicMock()
    response.status_code = status_code
    response.ok = 200 <= status_code < 300
    response.reason = "Reason"
    response.text = text
    if json_error:
        response.json.side_effect = ValueError("No JSON object could be decoded")
    else:
        response.json.return_value = body
    return response


@pytest.fixture
def session():
    mock = MagicMock()
    mock.headers = {}
    return mock


@pytest.fixture
def client(session):
    return RegistryClient("my_token", "fr-par", session=session, timeout=12)


class TestRegistryClientSetup:
    """Tests for client construction"""

    def test_region_endpoint(self):
        assert region_endpoint("nl-ams") == "https://api.scaleway.com/registry/v1/regions/nl-ams"
        assert region_endpoint("fr-par", "http://localhost:8080/") == "http://localhost:8080/regions/fr-par"

    def test_sets_auth_header(self, client, session):
        assert session.headers["X-Auth-Token"] == "my_token"
        assert client.endpoint == ENDPOINT

    def test_endpoint_override(self, session):
        client = RegistryClient("token", "region", endpoint="http://127.0.0.1:9999/", session=session)
        assert client.endpoint == "http://127.0.0.1:9999"


class TestRegistryClientCalls:
    """Tests for the individual API calls"""

    def test_list_namespaces(self, client, session):
        session.request.return_value = make_response(
            body={"namespaces": [{"id": "n1", "name": "mynamespace", "status": "ready"}], "total_count": 1}
        )

        namespaces = client.list_namespaces()

        assert len(namespaces) == 1
        assert namespaces[0].name == "mynamespace"
        session.request.assert_called_once_with("GET", f"{ENDPOINT}/namespaces", params=None, timeout=12)

    def test_get_namespace(self, client, session):
        session.request.return_value = make_response(body={"id": "n1", "name": "ns", "size": 2048})

        namespace = client.get_namespace("n1")

        assert namespace.size == 2048
        session.request.assert_called_once_with("GET", f"{ENDPOINT}/namespaces/n1", params=None, timeout=12)

    def test_list_images(self, client, session):
        session.request.return_value = make_response(
            body={"images": [{"id": "i1", "name": "api", "namespace_id": "n1"}], "total_count": 1}
        )

        images = client.list_images()

        assert images[0].namespace_id == "n1"

    def test_list_image_tags_requests_page_size(self, client, session):
        session.request.return_value = make_response(body={"tags": [TAG], "total_count": 1})

        tags = client.list_image_tags("i1")

        assert tags[0].name == "latest"
        assert tags[0].status is Status.READY
        session.request.assert_called_once_with(
            "GET", f"{ENDPOINT}/images/i1/tags", params={"page_size": "100"}, timeout=12
        )

    def test_delete_tag(self, client, session):
        session.request.return_value = make_response(body=TAG)

        deleted = client.delete_tag("t1")

        assert deleted.id == "t1"
        session.request.assert_called_once_with("DELETE", f"{ENDPOINT}/tags/t1", params=None, timeout=12)

    def test_delete_tag_force(self, client, session):
        session.request.return_value = make_response(body=TAG)

        client.delete_tag("t1", force=True)

        session.request.assert_called_once_with(
            "DELETE", f"{ENDPOINT}/tags/t1", params={"force": "true"}, timeout=12
        )


class TestRegistryClientErrors:
    """Tests for error handling"""

    def test_error_body_message(self, client, session):
        session.request.return_value = make_response(403, body={"message": "insufficient permissions"})

        with pytest.raises(PruneError) as exc_info:
            client.list_namespaces()

        assert exc_info.value.kind is ErrorKind.API
        assert exc_info.value.message == "insufficient permissions"
        assert exc_info.value.details["status_code"] == 403

    def test_error_without_json_body(self, client, session):
        session.request.return_value = make_response(502, json_error=True, text="Bad Gateway")

        with pytest.raises(PruneError) as exc_info:
            client.list_images()

        assert exc_info.value.kind is ErrorKind.API
        assert "502" in exc_info.value.message

    def test_transport_error(self, client, session):
        session.request.side_effect = requests.ConnectionError("connection refused")

        with pytest.raises(PruneError) as exc_info:
            client.list_image_tags("i1")

        assert exc_info.value.kind is ErrorKind.API
        assert "connection refused" in exc_info.value.message

    def test_invalid_json_on_success(self, client, session):
        session.request.return_value = make_response(200, json_error=True)

        with pytest.raises(PruneError) as exc_info:
            client.list_namespaces()

        assert exc_info.value.kind is ErrorKind.API

    def test_unexpected_payload_shape(self, client, session):
        session.request.return_value = make_response(body={"items": []})

        with pytest.raises(PruneError) as exc_info:
            client.list_namespaces()

        assert exc_info.value.kind is ErrorKind.API

    def test_bad_status_value(self, client, session):
        bad = dict(TAG, status="exploded")
        session.request.return_value = make_response(body={"tags": [bad], "total_count": 1})

        with pytest.raises(PruneError) as exc_info:
            client.list_image_tags("i1")

        assert exc_info.value.kind is ErrorKind.API
