"""Best-effort client identification from request headers."""

import hashlib
from typing import Mapping

UNKNOWN_CLIENT = "unknown"
FORWARDED_FOR_HEADER = "x-forwarded-for"
REAL_IP_HEADER = "x-real-ip"


def resolve_client_ip(
    headers: Mapping[str, str],
    forwarded_header: str = FORWARDED_FOR_HEADER,
    direct_header: str = REAL_IP_HEADER,
) -> str:
    """
    Pick the client address from proxy headers.

    The first entry of the forwarding chain wins, then the direct-IP header,
    then the literal "unknown".
    """
    forwarded = headers.get(forwarded_header)
    first_hop = forwarded.split(",")[0].strip() if forwarded else ""
    return first_hop or headers.get(direct_header) or UNKNOWN_CLIENT


def hash_identifier(identifier: str) -> str:
    """SHA-256 of the identifier truncated to 16 hex characters."""
    if not identifier:
        return UNKNOWN_CLIENT
    return hashlib.sha256(identifier.encode("utf-8")).hexdigest()[:16]
