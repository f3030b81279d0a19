
"""
   Firebase sign-in / ID token errors, keyed by the provider's error codes.
"""

# provider code -> text safe to show to the end user
FRIENDLY_MESSAGES = {
    "auth/email-already-in-use": "An account with this email already exists. Try signing in instead.",
    "auth/weak-password": "Password is too weak. Please choose a stronger password.",
    "auth/user-not-found": "No account found with this email. Try creating an account instead.",
    "auth/wrong-password": "Incorrect password. Please try again.",
    "auth/invalid-email": "Please enter a valid email address.",
    "auth/missing-token": "Unauthorized - No token provided",
    "auth/argument-error": "Unauthorized - Malformed token",
    "auth/id-token-expired": "Your session has expired. Please sign in again.",
    "auth/invalid-id-token": "Unauthorized - Invalid token",
    "auth/user-disabled": "This account has been disabled.",
    "auth/certificate-fetch-failed": "Sign-in could not be verified right now. Please try again.",
}

DEFAULT_MESSAGE = "Authentication failed. Please sign in again."


def friendly_auth_message(code: str | None, default: str = DEFAULT_MESSAGE) -> str:
    return FRIENDLY_MESSAGES.get(code or "", default)


class FirebaseAuthError(Exception):
    """ID token rejected; `code` follows the auth/* naming of the client SDK."""

    def __init__(self, code: str, detail: str | None = None):
        super().__init__(detail or code)
        self.code = code
        self.detail = detail

    @property
    def message(self) -> str:
        return friendly_auth_message(self.code)
