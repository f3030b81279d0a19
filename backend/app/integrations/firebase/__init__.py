
from .errors import FirebaseAuthError, friendly_auth_message, FRIENDLY_MESSAGES
from .token_verifier import FirebaseIdentity, FirebaseTokenVerifier


__all__ = [
    "FirebaseAuthError", "friendly_auth_message", "FRIENDLY_MESSAGES",
    "FirebaseIdentity", "FirebaseTokenVerifier",
]
