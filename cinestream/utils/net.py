"""Request origin helpers."""

from starlette.requests import Request

__all__ = ["client_ip", "UNKNOWN_ORIGIN"]

# Returned when no address can be determined; never identifies a client.
UNKNOWN_ORIGIN = "unknown"


def client_ip(request: Request) -> str:
    """Best-effort client address.

    1) ``X-Forwarded-For`` (first hop)
    2) ``X-Real-IP``
    3) the ASGI peer address
    """

    xff = request.headers.get("x-forwarded-for")
    if xff:
        ip = xff.split(",")[0].strip()
        if ip:
            return ip
    xri = request.headers.get("x-real-ip")
    if xri and xri.strip():
        return xri.strip()
    if request.client and request.client.host:
        return request.client.host
    return UNKNOWN_ORIGIN
