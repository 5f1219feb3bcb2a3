"""
Unit tests for JWKSPublisher.
"""

import base64
import hashlib
import json

from cryptography.hazmat.primitives import hashes
from cryptography.hazmat.primitives.asymmetric import ec, padding, rsa
from cryptography.hazmat.primitives import serialization
from jose import jwt

from shared.errors import EncodingError, KeyParseError
from shared.test_helpers import EpicTestDataFactory
from service_epic_auth.app.assertion.builder import AssertionBuilder
from service_epic_auth.app.jwks.publisher import JWKSPublisher, base64url_encode, derive_kid


def b64url_to_int(value: str) -> int:
    padded = value + "=" * (-len(value) % 4)
    return int.from_bytes(base64.urlsafe_b64decode(padded), "big")


class TestJWKSPublisher:
    """Test cases for JWKSPublisher."""

    def test_document_fields(self, key_pair):
        """One RSA signing key with the legacy RS384 alg."""
        result = JWKSPublisher().build_jwks(key_pair.public_pem)

        assert result.ok
        keys = result.value["keys"]
        assert len(keys) == 1
        key = keys[0]
        assert set(key) == {"kty", "kid", "use", "alg", "n", "e"}
        assert key["kty"] == "RSA"
        assert key["use"] == "sig"
        assert key["alg"] == "RS384"
        assert key["e"] == "AQAB"

    def test_kid_is_sha1_prefix(self, key_pair):
        """kid is the first 16 hex characters of SHA-1 over the PEM text."""
        expected = hashlib.sha1(key_pair.public_pem.encode("utf-8")).hexdigest()[:16]

        key = JWKSPublisher().build_jwks(key_pair.public_pem).value["keys"][0]

        assert key["kid"] == expected
        assert derive_kid(key_pair.public_pem) == expected

    def test_kid_depends_on_pem_text(self, key_pair):
        """Formatting differences in the PEM change the kid."""
        assert derive_kid(key_pair.public_pem) != derive_kid(key_pair.public_pem.rstrip("\n"))

    def test_deterministic(self, key_pair):
        """Same input, byte-identical output."""
        publisher = JWKSPublisher()

        assert publisher.publish(key_pair.public_pem).value == publisher.publish(key_pair.public_pem).value

    def test_pretty_printed(self, key_pair):
        """Output is indented with four spaces and parses back to the document."""
        publisher = JWKSPublisher()
        body = publisher.publish(key_pair.public_pem).value

        assert body.startswith('{\n    "keys": [\n        {')
        assert "\\/" not in body
        assert json.loads(body) == publisher.build_jwks(key_pair.public_pem).value

    def test_no_padding(self, key_pair, other_key_pair):
        """n and e are unpadded base64url."""
        for pair in (key_pair, other_key_pair):
            key = JWKSPublisher().build_jwks(pair.public_pem).value["keys"][0]
            assert "=" not in key["n"]
            assert "+" not in key["n"] and "/" not in key["n"]

    def test_modulus_round_trip(self, key_pair):
        """A verifier rebuilding the key from n and e accepts our signatures."""
        key = JWKSPublisher().build_jwks(key_pair.public_pem).value["keys"][0]
        rebuilt = rsa.RSAPublicNumbers(b64url_to_int(key["e"]), b64url_to_int(key["n"])).public_key()

        assert rebuilt.public_numbers() == key_pair.public_key.public_numbers()

        message = b"epic"
        signature = key_pair.private_key.sign(message, padding.PKCS1v15(), hashes.SHA256())
        rebuilt.verify(signature, message, padding.PKCS1v15(), hashes.SHA256())

    def test_published_key_verifies_assertion(self, key_pair):
        """An assertion signed with the private key verifies against the published JWK by kid."""
        key = JWKSPublisher().build_jwks(key_pair.public_pem).value["keys"][0]
        assertion = AssertionBuilder().build(
            EpicTestDataFactory.CLIENT_ID,
            EpicTestDataFactory.TOKEN_URL,
            key_pair.private_pem,
            key["kid"],
        ).value

        jwk = {name: value for name, value in key.items() if name != "alg"}
        claims = jwt.decode(assertion, jwk, algorithms=["RS256"], audience=EpicTestDataFactory.TOKEN_URL)

        assert jwt.get_unverified_header(assertion)["kid"] == key["kid"]
        assert claims["iss"] == EpicTestDataFactory.CLIENT_ID

    def test_invalid_pem(self):
        """Empty or malformed input is a key parse error."""
        for pem in ("", "-----BEGIN PUBLIC KEY-----\ngarbage\n-----END PUBLIC KEY-----\n"):
            result = JWKSPublisher().publish(pem)
            assert isinstance(result.error, KeyParseError)

    def test_non_rsa_key(self):
        """EC public keys cannot be published."""
        ec_pem = ec.generate_private_key(ec.SECP256R1()).public_key().public_bytes(
            encoding=serialization.Encoding.PEM,
            format=serialization.PublicFormat.SubjectPublicKeyInfo,
        ).decode()

        result = JWKSPublisher().publish(ec_pem)

        assert isinstance(result.error, KeyParseError)

    def test_encoding_failure(self, key_pair, monkeypatch):
        """Serializer failures surface as encoding errors."""
        def failing_dumps(*args, **kwargs):
            raise ValueError("cannot encode")

        monkeypatch.setattr("service_epic_auth.app.jwks.publisher.json.dumps", failing_dumps)

        result = JWKSPublisher().publish(key_pair.public_pem)

        assert isinstance(result.error, EncodingError)


def test_base64url_encode():
    """Padding is stripped and the URL-safe alphabet is used."""
    assert base64url_encode(b"\x01\x00\x01") == "AQAB"
    assert base64url_encode(b"\xfb\xff") == "-_8"
    assert base64url_encode(b"a") == "YQ"
