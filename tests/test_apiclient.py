"""Tests for the authenticated EDA API client."""

import json

import httpx
import pytest

from eda_bridge import apiclient
from eda_bridge.apiclient import CLIENT_URL, EdaApiClient, oauth_url
from eda_bridge.errors import ConfigError, HttpError, LoginFailedError, SecretNotFoundError
from eda_bridge.rest import RestClient
from eda_bridge.models import ProviderConfig

BASE = "https://eda.example.com"
EDA_TOKEN_URL = BASE + oauth_url("eda")
KC_TOKEN_URL = BASE + oauth_url("master")
CLIENTS_URL = BASE + CLIENT_URL.format(realm="eda")


def token(access):
    return httpx.Response(200, json={"access_token": access, "refresh_token": "r", "expires_in": 300})


def make_config(**overrides):
    values = {
        "base_url": BASE,
        "kc_username": "kcadmin",
        "kc_password": "kcpw",
        "kc_realm": "master",
        "kc_client_id": "admin-cli",
        "eda_username": "admin",
        "eda_password": "admin",
        "eda_realm": "eda",
        "eda_client_id": "eda",
        "eda_client_secret": "configured",
        "rest_timeout": 5,
        "rest_retries": 0,
        "rest_retry_interval": 0,
    }
    values.update(overrides)
    return ProviderConfig(**values)


def test_oauth_url():
    assert oauth_url("eda") == "/core/httpproxy/v1/keycloak/realms/eda/protocol/openid-connect/token"


def test_requires_base_url():
    with pytest.raises(ConfigError):
        EdaApiClient(make_config(base_url=""))


def test_configured_secret_skips_keycloak(respx_mock):
    eda_login = respx_mock.post(EDA_TOKEN_URL).mock(return_value=token("eda-token"))
    respx_mock.get(f"{BASE}/apps/things").mock(return_value=httpx.Response(200, json={"items": []}))

    with EdaApiClient(make_config()) as client:
        assert client.get("/apps/things") == {"items": []}

    form = dict(httpx.QueryParams(eda_login.calls.last.request.content.decode()))
    assert form["client_secret"] == "configured"
    assert form["grant_type"] == "password"


def test_secret_resolved_through_keycloak(respx_mock):
    kc_login = respx_mock.post(KC_TOKEN_URL).mock(return_value=token("kc-token"))
    listing = respx_mock.get(CLIENTS_URL).mock(
        return_value=httpx.Response(200, json=[{"clientId": "eda", "secret": "from-keycloak"}])
    )
    eda_login = respx_mock.post(EDA_TOKEN_URL).mock(return_value=token("eda-token"))
    respx_mock.get(f"{BASE}/apps/things").mock(return_value=httpx.Response(200, json={}))

    with EdaApiClient(make_config(eda_client_secret="")) as client:
        assert client.credentials.primary.client_secret == "from-keycloak"
        client.get("/apps/things")

    kc_form = dict(httpx.QueryParams(kc_login.calls.last.request.content.decode()))
    assert kc_form["client_id"] == "admin-cli"
    assert kc_form["username"] == "kcadmin"
    request = listing.calls.last.request
    assert request.headers["authorization"] == "Bearer kc-token"
    assert request.url.params["clientId"] == "eda"
    eda_form = dict(httpx.QueryParams(eda_login.calls.last.request.content.decode()))
    assert eda_form["client_secret"] == "from-keycloak"


def test_crud_methods(respx_mock):
    respx_mock.post(EDA_TOKEN_URL).mock(return_value=token("eda-token"))
    create = respx_mock.post(f"{BASE}/apps/ns/default/things").mock(return_value=httpx.Response(201, json={"name": "a"}))
    update = respx_mock.put(f"{BASE}/apps/ns/default/things/a").mock(return_value=httpx.Response(200, json={"name": "a"}))
    delete = respx_mock.delete(f"{BASE}/apps/ns/default/things/a").mock(return_value=httpx.Response(204))
    query = respx_mock.get(f"{BASE}/apps/ns/default/things").mock(return_value=httpx.Response(200, json={"n": 1}))

    with EdaApiClient(make_config()) as client:
        path = "/apps/ns/{namespace}/things"
        params = {"namespace": "default"}
        assert client.create(path, params, {"name": "a"}) == {"name": "a"}
        assert client.update(path + "/{name}", {**params, "name": "a"}, {"name": "a"}) == {"name": "a"}
        assert client.delete(path + "/{name}", {**params, "name": "a"}) is None
        assert client.get_by_query(path, params, {"labelSelector": "x=y"}) == {"n": 1}

    assert json.loads(create.calls.last.request.content) == {"name": "a"}
    assert update.called
    assert delete.called
    assert query.calls.last.request.url.params["labelSelector"] == "x=y"
    assert query.calls.last.request.headers["authorization"] == "Bearer eda-token"


def test_error_status_raises_http_error(respx_mock):
    respx_mock.post(EDA_TOKEN_URL).mock(return_value=token("eda-token"))
    respx_mock.get(f"{BASE}/apps/missing").mock(return_value=httpx.Response(404, text="no such thing"))

    with EdaApiClient(make_config()) as client:
        with pytest.raises(HttpError) as exc_info:
            client.get("/apps/missing")

    assert exc_info.value.status == 404
    assert exc_info.value.body == "no such thing"
    assert "GET /apps/missing: HTTP 404" in str(exc_info.value)


def test_token_reused_across_calls(respx_mock):
    eda_login = respx_mock.post(EDA_TOKEN_URL).mock(return_value=token("eda-token"))
    respx_mock.get(f"{BASE}/apps/things").mock(return_value=httpx.Response(200, json={}))

    with EdaApiClient(make_config()) as client:
        client.get("/apps/things")
        client.get("/apps/things")
        client.get("/apps/things")

    assert eda_login.call_count == 1


def test_login_failure_propagates(respx_mock):
    sleeps = []
    respx_mock.post(EDA_TOKEN_URL).mock(return_value=httpx.Response(401, text="invalid_grant"))

    with EdaApiClient(make_config(), sleep=sleeps.append) as client:
        with pytest.raises(LoginFailedError):
            client.get("/apps/things")

    assert sleeps == [1.0, 2.0, 4.0, 8.0]


def test_failed_secret_lookup_closes_owned_transport(respx_mock, monkeypatch):
    """A constructor that raises must not leave its own HTTP client open."""
    created = []

    class RecordingRestClient(RestClient):
        def __init__(self, *args, **kwargs):
            super().__init__(*args, **kwargs)
            created.append(self)

    monkeypatch.setattr(apiclient, "RestClient", RecordingRestClient)
    respx_mock.post(KC_TOKEN_URL).mock(return_value=token("kc-token"))
    respx_mock.get(CLIENTS_URL).mock(return_value=httpx.Response(200, json=[]))

    with pytest.raises(SecretNotFoundError):
        EdaApiClient(make_config(eda_client_secret=""))

    assert len(created) == 1
    assert created[0]._client.is_closed


def test_failed_secret_lookup_leaves_given_transport_open(respx_mock):
    respx_mock.post(KC_TOKEN_URL).mock(return_value=token("kc-token"))
    respx_mock.get(CLIENTS_URL).mock(return_value=httpx.Response(200, json=[]))
    rest = RestClient(BASE, retries=0)

    with pytest.raises(SecretNotFoundError):
        EdaApiClient(make_config(eda_client_secret=""), rest=rest)

    assert not rest._client.is_closed
    rest.close()
