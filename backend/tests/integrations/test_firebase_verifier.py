from __future__ import annotations

import datetime as dt
import json
import time

import pytest
import requests
from cryptography import x509
from cryptography.hazmat.primitives import hashes, serialization
from cryptography.hazmat.primitives.asymmetric import rsa
from cryptography.x509.oid import NameOID
from jose import jwt

from app.integrations.firebase import FirebaseAuthError, FirebaseTokenVerifier, friendly_auth_message


PROJECT = "catalog-pilot-test"
ISSUER = f"https://securetoken.google.com/{PROJECT}"


@pytest.fixture(scope="module")
def signing_key():
    """RSA key plus a self-signed x509 certificate, the shape Google publishes."""
    key = rsa.generate_private_key(public_exponent=65537, key_size=2048)
    name = x509.Name([x509.NameAttribute(NameOID.COMMON_NAME, "securetoken.test")])
    now = dt.datetime.now(dt.timezone.utc)
    cert = (
        x509.CertificateBuilder()
        .subject_name(name)
        .issuer_name(name)
        .public_key(key.public_key())
        .serial_number(x509.random_serial_number())
        .not_valid_before(now - dt.timedelta(days=1))
        .not_valid_after(now + dt.timedelta(days=1))
        .sign(key, hashes.SHA256())
    )
    private_pem = key.private_bytes(
        serialization.Encoding.PEM, serialization.PrivateFormat.PKCS8, serialization.NoEncryption(),
    ).decode()
    cert_pem = cert.public_bytes(serialization.Encoding.PEM).decode()
    return private_pem, cert_pem


class CertSession:
    def __init__(self, certs: dict, max_age: int = 600):
        self.certs = certs
        self.max_age = max_age
        self.calls = 0

    def get(self, url, timeout=None):
        self.calls += 1
        resp = requests.Response()
        resp.status_code = 200
        resp._content = json.dumps(self.certs).encode()
        resp.headers["Cache-Control"] = f"public, max-age={self.max_age}, must-revalidate"
        return resp

    def close(self):
        pass


def _claims(**overrides) -> dict:
    now = int(time.time())
    claims = {
        "sub": "firebase-uid-1", "user_id": "firebase-uid-1", "aud": PROJECT, "iss": ISSUER,
        "iat": now - 10, "exp": now + 3600, "email": "jo@example.com", "email_verified": True,
        "name": "Jo Bloggs",
    }
    claims.update(overrides)
    return claims


def _signed(private_pem: str, kid: str = "k1", **overrides) -> str:
    return jwt.encode(_claims(**overrides), private_pem, algorithm="RS256", headers={"kid": kid})


def test_valid_signed_token_yields_identity(signing_key):
    private_pem, cert_pem = signing_key
    session = CertSession({"k1": cert_pem})
    verifier = FirebaseTokenVerifier(PROJECT, session=session)

    identity = verifier.verify(_signed(private_pem))

    assert identity.uid == "firebase-uid-1"
    assert identity.email == "jo@example.com" and identity.email_verified is True
    assert (identity.first_name, identity.last_name) == ("Jo", "Bloggs")

    verifier.verify(_signed(private_pem))
    assert session.calls == 1, "certificates should be cached for max-age"


def test_expired_token_maps_to_friendly_message(signing_key):
    private_pem, cert_pem = signing_key
    verifier = FirebaseTokenVerifier(PROJECT, session=CertSession({"k1": cert_pem}))
    with pytest.raises(FirebaseAuthError) as exc:
        verifier.verify(_signed(private_pem, exp=int(time.time()) - 60))
    assert exc.value.code == "auth/id-token-expired"
    assert exc.value.message == "Your session has expired. Please sign in again."


def test_wrong_audience_and_unknown_kid_are_rejected(signing_key):
    private_pem, cert_pem = signing_key
    verifier = FirebaseTokenVerifier(PROJECT, session=CertSession({"k1": cert_pem}))
    with pytest.raises(FirebaseAuthError) as exc:
        verifier.verify(_signed(private_pem, aud="someone-else"))
    assert exc.value.code == "auth/invalid-id-token"
    with pytest.raises(FirebaseAuthError) as exc:
        verifier.verify(_signed(private_pem, kid="rotated"))
    assert exc.value.code == "auth/invalid-id-token"


def test_missing_and_malformed_tokens():
    verifier = FirebaseTokenVerifier(None, verify_signature=False)
    with pytest.raises(FirebaseAuthError) as exc:
        verifier.verify(None)
    assert exc.value.message == "Unauthorized - No token provided"
    with pytest.raises(FirebaseAuthError) as exc:
        verifier.verify("not-a-jwt")
    assert exc.value.code == "auth/argument-error"


def test_unverified_mode_still_checks_expiry_and_project():
    verifier = FirebaseTokenVerifier(PROJECT, verify_signature=False)
    token = jwt.encode(_claims(), "any-secret", algorithm="HS256")
    assert verifier.verify(token).uid == "firebase-uid-1"

    expired = jwt.encode(_claims(exp=int(time.time()) - 1), "any-secret", algorithm="HS256")
    with pytest.raises(FirebaseAuthError):
        verifier.verify(expired)
    other = jwt.encode(_claims(iss="https://securetoken.google.com/other"), "any-secret", algorithm="HS256")
    with pytest.raises(FirebaseAuthError):
        verifier.verify(other)


def test_signature_mode_needs_a_project():
    with pytest.raises(ValueError):
        FirebaseTokenVerifier(None, verify_signature=True)


@pytest.mark.parametrize("code,text", [
    ("auth/email-already-in-use", "An account with this email already exists. Try signing in instead."),
    ("auth/weak-password", "Password is too weak. Please choose a stronger password."),
    ("auth/user-not-found", "No account found with this email. Try creating an account instead."),
    ("auth/wrong-password", "Incorrect password. Please try again."),
    ("auth/invalid-email", "Please enter a valid email address."),
])
def test_provider_codes_map_to_friendly_text(code, text):
    assert friendly_auth_message(code) == text


def test_unknown_code_gets_default_text():
    assert friendly_auth_message("auth/something-new") == "Authentication failed. Please sign in again."
