"""Endpoint parsing for WAMP server connection strings."""

from __future__ import annotations

from dataclasses import dataclass
from urllib.parse import urlsplit

from .errors import WampInvalidEndpoint

ENCRYPTED_SCHEMES = {"https": 443, "wss": 443}
PLAIN_SCHEMES = {"http": 80, "ws": 80}


@dataclass(frozen=True)
class Endpoint:
    """Resolved address of a WAMP server."""

    host: str
    port: int
    encrypted: bool = False

    def __str__(self) -> str:
        return f"{self.host}:{self.port}"


def resolve_endpoint(endpoint: str) -> Endpoint:
    """Parse a URL-shaped endpoint string into an Endpoint.

    Encrypted schemes (https, wss) default to port 443, plain schemes
    (http, ws) to port 80. A missing scheme is treated as plain.

    Raises:
        WampInvalidEndpoint: If the string has no host, an unknown scheme
            or an invalid port.
    """
    if not isinstance(endpoint, str) or not endpoint.strip():
        raise WampInvalidEndpoint("Endpoint must be a non-empty string")

    candidate = endpoint.strip()
    if "://" not in candidate:
        candidate = f"//{candidate}"

    try:
        parts = urlsplit(candidate)
        port = parts.port
    except ValueError as err:
        raise WampInvalidEndpoint(f"Invalid endpoint {endpoint!r}: {err}") from err

    scheme = parts.scheme.lower()
    if scheme in ENCRYPTED_SCHEMES:
        encrypted = True
        default_port = ENCRYPTED_SCHEMES[scheme]
    elif scheme in PLAIN_SCHEMES or not scheme:
        encrypted = False
        default_port = PLAIN_SCHEMES.get(scheme, 80)
    else:
        raise WampInvalidEndpoint(f"Unsupported endpoint scheme: {parts.scheme}")

    if not parts.hostname:
        raise WampInvalidEndpoint(f"Endpoint has no host: {endpoint!r}")

    return Endpoint(
        host=parts.hostname,
        port=port if port is not None else default_port,
        encrypted=encrypted,
    )
