"""
privacy_distro.relay: the privacy pool relay as an external capability.

Provides:
- HttpRelayClient: RelayService over HTTP
- RelaySessionCache: resets the relay session before every call
- translate_relay_error: maps relay failures to domain errors
"""

from privacy_distro.relay.client import HttpRelayClient, RelayService
from privacy_distro.relay.errors import translate_relay_error
from privacy_distro.relay.session_cache import RelaySessionCache

__all__ = [
    "HttpRelayClient",
    "RelayService",
    "RelaySessionCache",
    "translate_relay_error",
]
