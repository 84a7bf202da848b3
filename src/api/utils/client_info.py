"""
Client address, user agent and correlation id extraction.
"""

import uuid

from fastapi import Request

from src.app.services.audit_logger import RequestContext

CORRELATION_HEADER = "X-Correlation-ID"
UNKNOWN = "unknown"


def get_client_ip(request: Request) -> str:
    """
    Client address by header precedence: edge proxy, real-ip, first hop of
    forwarded-for, then the transport peer.
    """
    for header in ("cf-connecting-ip", "x-real-ip"):
        value = request.headers.get(header)
        if value and value.strip():
            return value.strip()

    forwarded = request.headers.get("x-forwarded-for")
    if forwarded:
        first_hop = forwarded.split(",")[0].strip()
        if first_hop:
            return first_hop

    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN


def get_user_agent(request: Request) -> str:
    return request.headers.get("user-agent") or UNKNOWN


def get_correlation_id(request: Request) -> str:
    correlation_id = getattr(request.state, "correlation_id", None)
    if correlation_id:
        return correlation_id
    return request.headers.get(CORRELATION_HEADER) or str(uuid.uuid4())


def get_request_context(request: Request) -> RequestContext:
    return RequestContext(
        ip_address=get_client_ip(request),
        user_agent=get_user_agent(request),
        request_path=request.url.path,
        correlation_id=get_correlation_id(request),
    )
