from __future__ import annotations

import pytest

from dex_data_providers.config import OAuthCredentials, load_secrets


def test_load_secrets_uses_env_path(tmp_path, monkeypatch):
    secrets_file = tmp_path / "custom.toml"
    secrets_file.write_text(
        '[github]\nclient_id = "abc"\nclient_secret = "shh"\nredirect_uri = "https://dex.example.org/cb"\n',
        encoding="utf-8",
    )
    monkeypatch.setenv("DEX_SECRETS_PATH", str(secrets_file))

    bundle = load_secrets(strict=True)

    assert bundle.source_path == secrets_file
    credentials = bundle.oauth_credentials("github")
    assert credentials == OAuthCredentials(client_id="abc", client_secret="shh", redirect_uri="https://dex.example.org/cb")
    assert credentials.can_exchange


def test_environment_overrides_file_values(tmp_path, monkeypatch):
    secrets_file = tmp_path / "custom.toml"
    secrets_file.write_text('[gitlab]\nclient_id = "from-file"\n', encoding="utf-8")
    monkeypatch.setenv("DEX_SECRETS_PATH", str(secrets_file))
    monkeypatch.setenv("DEX_GITLAB_CLIENT_ID", "from-env")
    monkeypatch.setenv("DEX_GITLAB_REDIRECT_URI", "https://dex.example.org/gl")

    credentials = load_secrets().oauth_credentials("gitlab")

    assert credentials.client_id == "from-env"
    assert credentials.redirect_uri == "https://dex.example.org/gl"
    assert credentials.can_authorize
    assert not credentials.can_exchange


def test_missing_section_yields_empty_credentials(tmp_path, monkeypatch):
    secrets_file = tmp_path / "custom.toml"
    secrets_file.write_text("", encoding="utf-8")
    monkeypatch.setenv("DEX_SECRETS_PATH", str(secrets_file))

    credentials = load_secrets().oauth_credentials("codeberg")

    assert credentials == OAuthCredentials()
    assert not credentials.can_authorize


def test_strict_mode_raises_when_nothing_found(tmp_path, monkeypatch):
    monkeypatch.chdir(tmp_path)
    monkeypatch.setattr("dex_data_providers.config._discover_project_root", lambda: None)

    with pytest.raises(FileNotFoundError):
        load_secrets(strict=True)

    assert load_secrets().data == {}
