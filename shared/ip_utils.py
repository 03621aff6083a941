"""
Client IP resolution for FastAPI requests.

Only used to attach a (hashed) client address to verification log events;
nothing here participates in the verification decision.
"""

from __future__ import annotations

from fastapi import Request

# Checked in order; the first non-empty value wins
PROXY_IP_HEADERS: tuple[str, ...] = (
    "CF-Connecting-IP",
    "True-Client-IP",
    "X-Forwarded-For",
    "X-Real-IP",
)


def get_client_ip(request: Request) -> str:
    """Return the originating client IP for *request*.

    For ``X-Forwarded-For`` style lists the left-most address is used. Falls
    back to the socket peer, or ``""`` when the request has no client.
    """
    for header in PROXY_IP_HEADERS:
        value = request.headers.get(header)
        if not value:
            continue
        client_ip = value.split(",")[0].strip()
        if client_ip:
            return client_ip

    return request.client.host if request.client else ""
