"""
Discord AutoReply - Errors
Structured failures raised by the reply cycle.
"""

from typing import Optional

from constants import NETWORK_ERROR_KEYWORDS


class AutoReplyError(Exception):
    """Base class for every failure the reply cycle knows how to report."""

    kind = "error"


class MissingCredentialError(AutoReplyError):
    kind = "missing_credential"

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"API key is required for provider '{provider}'")


class UnknownProviderError(AutoReplyError):
    kind = "unknown_provider"

    def __init__(self, provider: str):
        self.provider = provider
        super().__init__(f"Unknown provider: {provider!r}")


class ProviderHTTPError(AutoReplyError):
    """Non-success response from a provider. Carries the status text verbatim."""

    kind = "provider_http"

    def __init__(self, status: Optional[int], status_text: str):
        self.status = status
        self.status_text = status_text
        super().__init__(f"API request failed: {status_text}")


class EmptyInputError(AutoReplyError):
    kind = "empty_input"

    def __init__(self, message: str = "Empty message content"):
        super().__init__(message)


class NetworkOrPolicyBlockedError(AutoReplyError):
    """The provider could not be reached (network down, proxy, firewall)."""

    kind = "network_blocked"

    def __init__(self, provider: str, domain: str, detail: str = ""):
        self.provider = provider
        self.domain = domain
        self.detail = detail
        super().__init__(f"Request to {provider} ({domain}) was blocked: {detail}")


def looks_network_blocked(error_text: str) -> bool:
    """Heuristic match of an error message against network/policy keywords."""
    if not error_text:
        return False
    lowered = error_text.lower()
    return any(keyword.lower() in lowered for keyword in NETWORK_ERROR_KEYWORDS)
