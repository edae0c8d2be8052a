"""Tests for CLOB credential bootstrap."""

from __future__ import annotations

import json
from pathlib import Path  # noqa: TCH003
from unittest.mock import MagicMock, patch

from py_clob_client.clob_types import ApiCreds

from polyredeem.security.credentials import create_credential, load_credential, save_credential

_CREATE = "polyredeem.security.credentials._create_clob_client"


def _creds(key: str = "key-1") -> ApiCreds:
    return ApiCreds(api_key=key, api_secret="secret", api_passphrase="pass")


class TestCredentials:
    def test_missing_private_key(self, tmp_path: Path) -> None:
        with patch(_CREATE) as create:
            assert create_credential("", path=tmp_path / "c.json") is None
        create.assert_not_called()

    def test_derives_and_stores(self, tmp_path: Path) -> None:
        path = tmp_path / "data" / "credential.json"
        client = MagicMock()
        client.create_or_derive_api_creds.return_value = _creds()
        with patch(_CREATE, return_value=client) as create:
            creds = create_credential("0xkey", "https://clob.test", 137, path=path)
        assert creds.api_key == "key-1"
        create.assert_called_once_with("https://clob.test", "0xkey", 137)
        assert json.loads(path.read_text())["api_key"] == "key-1"

    def test_reuses_stored_credential(self, tmp_path: Path) -> None:
        path = tmp_path / "credential.json"
        save_credential(_creds("stored"), path)
        with patch(_CREATE) as create:
            creds = create_credential("0xkey", path=path)
        assert creds.api_key == "stored"
        create.assert_not_called()

    def test_overwrite_rederives(self, tmp_path: Path) -> None:
        path = tmp_path / "credential.json"
        save_credential(_creds("stored"), path)
        client = MagicMock()
        client.create_or_derive_api_creds.return_value = _creds("fresh")
        with patch(_CREATE, return_value=client):
            creds = create_credential("0xkey", path=path, overwrite=True)
        assert creds.api_key == "fresh"
        assert load_credential(path).api_key == "fresh"

    def test_failure_returns_none(self, tmp_path: Path) -> None:
        client = MagicMock()
        client.create_or_derive_api_creds.side_effect = RuntimeError("401 unauthorized")
        with patch(_CREATE, return_value=client):
            assert create_credential("0xkey", path=tmp_path / "c.json") is None
        assert not (tmp_path / "c.json").exists()

    def test_load_missing_or_corrupt(self, tmp_path: Path) -> None:
        assert load_credential(tmp_path / "absent.json") is None
        corrupt = tmp_path / "corrupt.json"
        corrupt.write_text('{"api_key": "x"}')
        assert load_credential(corrupt) is None
