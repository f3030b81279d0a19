
"""
Firebase ID token verification with python-jose
  - RS256 signature checked against Google's published x509 certificates
    (fetched with requests, cached for the Cache-Control max-age)
  - audience = project id, issuer = https://securetoken.google.com/<project id>
  - verify_signature=False is for local development only: claims and expiry are still checked
"""

from __future__ import annotations
import logging, re, threading, time, requests
from dataclasses import dataclass, field
from typing import Any, Callable, Dict, Optional

from jose import jwt, ExpiredSignatureError, JWTError
from jose.exceptions import JWTClaimsError

from app.integrations.firebase.errors import FirebaseAuthError

logger = logging.getLogger(__name__)

ISSUER_PREFIX = "https://securetoken.google.com/"
_MAX_AGE_RE = re.compile(r"max-age=(\d+)")


@dataclass(frozen=True)
class FirebaseIdentity:
    uid: str
    email: Optional[str] = None
    email_verified: bool = False
    name: Optional[str] = None
    picture: Optional[str] = None
    claims: Dict[str, Any] = field(default_factory=dict)

    @property
    def first_name(self) -> Optional[str]:
        if not self.name:
            return None
        return self.name.split(" ", 1)[0]

    @property
    def last_name(self) -> Optional[str]:
        if not self.name or " " not in self.name:
            return None
        return self.name.split(" ", 1)[1]


class FirebaseTokenVerifier:

    def __init__(
        self,
        project_id: Optional[str],
        *,
        verify_signature: bool = True,
        certs_url: str = "https://www.googleapis.com/robot/v1/metadata/x509/securetoken@system.gserviceaccount.com",
        timeout: int = 10,
        session: Optional[requests.Session] = None,
        clock: Callable[[], float] = time.time,
    ) -> None:
        if verify_signature and not project_id:
            raise ValueError("FIREBASE_PROJECT_ID is required when signature verification is enabled")
        self.project_id = project_id
        self.verify_signature = verify_signature
        self.certs_url = certs_url
        self.timeout = timeout
        self._session = session or requests.Session()
        self._clock = clock

        self._certs: Dict[str, str] = {}
        self._certs_expire_at: float = 0.0
        self._lock = threading.Lock()

    # ---------- Public ----------
    def verify(self, token: Optional[str]) -> FirebaseIdentity:
        if not token:
            raise FirebaseAuthError("auth/missing-token")
        if token.count(".") != 2:
            raise FirebaseAuthError("auth/argument-error", "token is not a JWT")

        claims = self._verified_claims(token) if self.verify_signature else self._unverified_claims(token)

        uid = claims.get("sub") or claims.get("user_id")
        if not uid or not isinstance(uid, str):
            raise FirebaseAuthError("auth/invalid-id-token", "missing sub claim")

        return FirebaseIdentity(
            uid=uid,
            email=claims.get("email"),
            email_verified=bool(claims.get("email_verified")),
            name=claims.get("name"),
            picture=claims.get("picture"),
            claims=claims,
        )

    def close(self) -> None:
        self._session.close()

    # ---------- Internals ----------
    def _verified_claims(self, token: str) -> Dict[str, Any]:
        try:
            header = jwt.get_unverified_header(token)
        except JWTError as e:
            raise FirebaseAuthError("auth/argument-error", str(e)) from e

        kid = header.get("kid")
        cert = self._get_certs().get(kid or "")
        if cert is None:
            raise FirebaseAuthError("auth/invalid-id-token", f"unknown key id {kid!r}")

        try:
            return jwt.decode(
                token,
                cert,
                algorithms=["RS256"],
                audience=self.project_id,
                issuer=ISSUER_PREFIX + str(self.project_id),
                options={"verify_at_hash": False},
            )
        except ExpiredSignatureError as e:
            raise FirebaseAuthError("auth/id-token-expired", str(e)) from e
        except JWTClaimsError as e:
            raise FirebaseAuthError("auth/invalid-id-token", str(e)) from e
        except JWTError as e:
            raise FirebaseAuthError("auth/invalid-id-token", str(e)) from e

    def _unverified_claims(self, token: str) -> Dict[str, Any]:
        try:
            claims = jwt.get_unverified_claims(token)
        except JWTError as e:
            raise FirebaseAuthError("auth/argument-error", str(e)) from e

        exp = claims.get("exp")
        if exp is not None and float(exp) < self._clock():
            raise FirebaseAuthError("auth/id-token-expired")
        if self.project_id:
            if claims.get("aud") != self.project_id:
                raise FirebaseAuthError("auth/invalid-id-token", "audience mismatch")
            if claims.get("iss") != ISSUER_PREFIX + self.project_id:
                raise FirebaseAuthError("auth/invalid-id-token", "issuer mismatch")
        return claims

    def _get_certs(self) -> Dict[str, str]:
        with self._lock:
            if self._certs and self._clock() < self._certs_expire_at:
                return self._certs
            try:
                resp = self._session.get(self.certs_url, timeout=self.timeout)
                resp.raise_for_status()
                certs = resp.json()
            except (requests.RequestException, ValueError) as e:
                logger.error("firebase.certs fetch failed url=%s err=%s", self.certs_url, e)
                raise FirebaseAuthError("auth/certificate-fetch-failed", str(e)) from e

            if not isinstance(certs, dict) or not certs:
                raise FirebaseAuthError("auth/certificate-fetch-failed", "empty certificate set")

            match = _MAX_AGE_RE.search(resp.headers.get("Cache-Control") or "")
            max_age = int(match.group(1)) if match else 3600
            self._certs = certs
            self._certs_expire_at = self._clock() + max_age
            logger.info("firebase.certs refreshed keys=%d max_age=%ss", len(certs), max_age)
            return self._certs
