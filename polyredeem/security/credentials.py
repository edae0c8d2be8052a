"""API credential bootstrap for the Polymarket CLOB.

Credentials are derived from the signing key by py-clob-client and stored
as JSON so later runs can reuse them.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Any

from polyredeem.core.logging import get_logger, mask_secret

logger = get_logger(__name__)

DEFAULT_CREDENTIAL_PATH = "data/credential.json"
_POLYGON_CHAIN_ID = 137


def _create_clob_client(host: str, key: str, chain_id: int) -> Any:
    """Create a ClobClient instance with deferred import."""
    from py_clob_client.client import ClobClient

    return ClobClient(host=host, key=key, chain_id=chain_id)


def _creds_to_dict(creds: Any) -> dict[str, str]:
    return {
        "api_key": creds.api_key,
        "api_secret": creds.api_secret,
        "api_passphrase": creds.api_passphrase,
    }


def load_credential(path: str | Path = DEFAULT_CREDENTIAL_PATH) -> Any | None:
    """Load a stored credential, or None when absent or unreadable."""
    from py_clob_client.clob_types import ApiCreds

    credential_path = Path(path)
    if not credential_path.exists():
        return None
    try:
        data = json.loads(credential_path.read_text(encoding="utf-8"))
        return ApiCreds(
            api_key=data["api_key"],
            api_secret=data["api_secret"],
            api_passphrase=data["api_passphrase"],
        )
    except (OSError, ValueError, KeyError, TypeError) as exc:
        logger.warning("credential.load_failed", path=str(credential_path), error=str(exc)[:200])
        return None


def save_credential(creds: Any, path: str | Path = DEFAULT_CREDENTIAL_PATH) -> None:
    credential_path = Path(path)
    credential_path.parent.mkdir(parents=True, exist_ok=True)
    credential_path.write_text(json.dumps(_creds_to_dict(creds), indent=2), encoding="utf-8")


def create_credential(
    private_key: str,
    clob_url: str = "https://clob.polymarket.com",
    chain_id: int = _POLYGON_CHAIN_ID,
    path: str | Path = DEFAULT_CREDENTIAL_PATH,
    overwrite: bool = False,
) -> Any | None:
    """Return CLOB API credentials, deriving and storing them if needed.

    A credential already stored at ``path`` is returned as-is unless
    ``overwrite`` is set. Returns None on any failure; whether that is fatal
    is up to the caller.
    """
    if not private_key:
        logger.error("credential.missing_private_key")
        return None

    if not overwrite:
        existing = load_credential(path)
        if existing is not None:
            logger.info("credential.reused", path=str(path))
            return existing

    try:
        client = _create_clob_client(clob_url, private_key, chain_id)
        creds = client.create_or_derive_api_creds()
        save_credential(creds, path)
    except Exception as exc:
        logger.error("credential.create_failed", error=str(exc)[:200])
        return None

    logger.info("credential.created", path=str(path), api_key=mask_secret(creds.api_key))
    return creds
