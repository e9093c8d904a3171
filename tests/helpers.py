"""Shared fakes for HTTP tests (httpx.MockTransport handlers and payloads)."""

import httpx

MIRRORS = ("https://m1.test", "https://m2.test", "https://m3.test")
MPK_BASE = "https://mpk.test:8088"

COMPACT_VEHICLE = {"v": 1, "c": 2, "x": 0.0, "y": 0.0, "l": "N", "t": "b", "s": "A", "d": "B", "e": 0}
VERBOSE_VEHICLE = {
    "code": 1,
    "course": 2,
    "x": 0.0,
    "y": 0.0,
    "line": "N",
    "type": "BUS",
    "symbol": "A",
    "direction": "B",
    "delay": 0,
}


def bus_stop(code: str, name: str = "Grzybowa") -> dict:
    return {
        "busStopCode": code,
        "busStopName": name,
        "busStopLatitude": 51.1589,
        "busStopLongitude": 16.8532,
    }


def digest_handler(routes, *, realm="R", nonce="N", qop="auth", algorithm=None, opaque=None, seen=None):
    """Challenge unauthenticated calls, answer authenticated ones with `routes(request)`."""

    def handler(request: httpx.Request) -> httpx.Response:
        if seen is not None:
            seen.append(request)
        if "authorization" not in request.headers:
            challenge = f'Digest realm="{realm}", nonce="{nonce}"'
            if qop is not None:
                challenge += f', qop="{qop}"'
            if algorithm is not None:
                challenge += f", algorithm={algorithm}"
            if opaque is not None:
                challenge += f', opaque="{opaque}"'
            return httpx.Response(401, headers={"WWW-Authenticate": challenge})
        return routes(request)

    return handler
