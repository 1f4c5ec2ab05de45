"""CLI command tests."""

import json
from urllib.parse import parse_qs, urlsplit

import pytest
from typer.testing import CliRunner

from eve_sso.cli import main as cli

from conftest import NOW

runner = CliRunner()


@pytest.fixture(autouse=True)
def use_provider(monkeypatch, provider):
    monkeypatch.setattr(cli, "get_eve_provider", lambda: provider)


def test_verify_valid_token(make_token, claims):
    result = runner.invoke(cli.app, ["verify", make_token(claims)])

    assert result.exit_code == 0
    assert "2112625428" in result.output
    assert "CCP Zoetrope" in result.output


def test_verify_json(make_token, claims):
    result = runner.invoke(cli.app, ["verify", make_token(claims), "--json"])

    assert result.exit_code == 0
    assert json.loads(result.output)["sub"] == claims["sub"]


def test_verify_rejected_token(make_token, claims):
    claims["exp"] = NOW - 1
    result = runner.invoke(cli.app, ["verify", make_token(claims)])

    assert result.exit_code == 1
    assert "token_expired" in result.output


def test_authorize_url():
    result = runner.invoke(cli.app, ["authorize-url", "--state", "abc"])

    assert result.exit_code == 0
    query = parse_qs(urlsplit(result.output.strip()).query)
    assert query["state"] == ["abc"]


def test_discover():
    result = runner.invoke(cli.app, ["discover"])

    assert result.exit_code == 0
    assert json.loads(result.output)["jwks_uri"] == "https://login.eveonline.com/oauth/jwks"


def test_missing_configuration(monkeypatch):
    def broken():
        raise ValueError("EVE SSO client ID required")

    monkeypatch.setattr(cli, "get_eve_provider", broken)
    result = runner.invoke(cli.app, ["discover"])

    assert result.exit_code == 2
