from unittest.mock import MagicMock

import pytest
from cryptography.hazmat.primitives import serialization
from cryptography.hazmat.primitives.asymmetric import rsa

from auth import ServiceAccountAuthProvider


def make_response(status_code=200, json_data=None, text=None):
    """Stand-in for requests.Response with just what our code reads."""
    resp = MagicMock()
    resp.status_code = status_code
    resp.json.return_value = json_data if json_data is not None else {}
    resp.text = text if text is not None else ("" if json_data is None else str(json_data))
    resp.content = b"" if json_data is None and not text else b"x"
    return resp


@pytest.fixture(scope="session")
def rsa_key():
    return rsa.generate_private_key(public_exponent=65537, key_size=2048)


@pytest.fixture
def key_path(tmp_path, rsa_key):
    pem = rsa_key.private_bytes(
        encoding=serialization.Encoding.PEM,
        format=serialization.PrivateFormat.PKCS8,
        encryption_algorithm=serialization.NoEncryption(),
    )
    path = tmp_path / "ssa_key.pem"
    path.write_bytes(pem)
    return str(path)


@pytest.fixture
def provider(key_path):
    return ServiceAccountAuthProvider(
        client_id="client-id",
        client_secret="client-secret",
        service_account_id="ssa-id",
        key_id="key-id",
        key_path=key_path,
        scopes=["data:read", "data:write"],
    )


@pytest.fixture
def fake_auth():
    auth = MagicMock()
    auth.get_token.return_value = "test-token"
    return auth
