"""Login flow through the FastAPI routes with a faked SSO service."""

from urllib.parse import parse_qs, urlsplit

import httpx
import pytest
from fastapi.testclient import TestClient

from eve_sso.api.main import create_app
from eve_sso.api.routers.sso import STATE_COOKIE, VERIFIER_COOKIE
from eve_sso.auth.oauth2 import code_challenge_for
from eve_sso.auth.provider_eve import EveOnlineProvider
from eve_sso.auth.provider_factory import get_provider_instance

from conftest import clock


def _client(provider) -> TestClient:
    app = create_app()
    app.dependency_overrides[get_provider_instance] = lambda: provider
    return TestClient(app)


@pytest.fixture
def client(provider):
    return _client(provider)


def test_health(client):
    response = client.get("/health")
    assert response.status_code == 200
    assert response.json()["status"] == "ok"


def test_login_redirects_to_sso(client):
    response = client.get("/auth/eve/login", follow_redirects=False)

    assert response.status_code == 307
    location = response.headers["location"]
    assert location.startswith("https://login.eveonline.com/v2/oauth/authorize?")

    query = parse_qs(urlsplit(location).query)
    assert query["state"] == [client.cookies[STATE_COOKIE]]
    assert "code_challenge" not in query


def test_full_login(client, make_token, claims, fake_sso):
    fake_sso.token_body["access_token"] = make_token(claims)

    login = client.get("/auth/eve/login", follow_redirects=False)
    state = parse_qs(urlsplit(login.headers["location"]).query)["state"][0]

    response = client.get("/auth/eve/callback", params={"code": "abc", "state": state})

    assert response.status_code == 200
    body = response.json()
    assert body["id"] == "2112625428"
    assert body["name"] == "CCP Zoetrope"
    assert body["scopes"] == claims["scp"]
    assert "token" not in body


def test_callback_state_mismatch(client, fake_sso):
    client.get("/auth/eve/login", follow_redirects=False)

    response = client.get("/auth/eve/callback", params={"code": "abc", "state": "forged"})

    assert response.status_code == 401
    assert fake_sso.count("/v2/oauth/token") == 0


def test_callback_without_login(client):
    response = client.get("/auth/eve/callback", params={"code": "abc", "state": "x"})
    assert response.status_code == 401


def test_callback_rejected_token_is_generic_401(client, make_token, claims, fake_sso):
    claims["azp"] = "another-app"
    fake_sso.token_body["access_token"] = make_token(claims)

    login = client.get("/auth/eve/login", follow_redirects=False)
    state = parse_qs(urlsplit(login.headers["location"]).query)["state"][0]
    response = client.get("/auth/eve/callback", params={"code": "abc", "state": state})

    assert response.status_code == 401
    assert response.json() == {"detail": "Authentication failed"}


def test_pkce_round_trip(config, http_client, make_token, claims, fake_sso):
    provider = EveOnlineProvider(
        config.model_copy(update={"use_pkce": True}),
        http_client=http_client,
        clock=clock,
    )
    client = _client(provider)
    fake_sso.token_body["access_token"] = make_token(claims)

    login = client.get("/auth/eve/login", follow_redirects=False)
    query = parse_qs(urlsplit(login.headers["location"]).query)
    verifier = client.cookies[VERIFIER_COOKIE]
    assert query["code_challenge"] == [code_challenge_for(verifier)]
    assert query["code_challenge_method"] == ["S256"]

    response = client.get(
        "/auth/eve/callback", params={"code": "abc", "state": query["state"][0]}
    )
    assert response.status_code == 200

    token_request = [r for r in fake_sso.requests if r.method == "POST"][-1]
    assert parse_qs(token_request.content.decode())["code_verifier"] == [verifier]


def test_metadata(client):
    response = client.get("/auth/eve/metadata")
    assert response.status_code == 200
    assert response.json()["issuer"] == "https://login.eveonline.com"


def test_sso_unavailable(config):
    broken = httpx.AsyncClient(
        transport=httpx.MockTransport(lambda request: httpx.Response(502))
    )
    client = _client(EveOnlineProvider(config, http_client=broken))

    response = client.get("/auth/eve/login", follow_redirects=False)
    assert response.status_code == 503
