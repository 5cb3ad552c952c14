import os
import re
import json
import time
import logging
from typing import Dict, Mapping, NamedTuple, Optional
from urllib.parse import urlsplit, parse_qs

import httpx

logger = logging.getLogger("linkding_relay")

INVALID_URL_MESSAGE = "Parâmetro url inválido"
FALLBACK_ERROR_MESSAGE = "Erro ao buscar recurso"

PREFLIGHT_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Access-Control-Allow-Headers": "Content-Type, Authorization, x-linkding-token",
    "Access-Control-Allow-Methods": "GET, OPTIONS",
}
JSON_HEADERS = {
    "Access-Control-Allow-Origin": "*",
    "Content-Type": "application/json",
}

_TARGET_RE = re.compile(r"^https?://", re.IGNORECASE)
_MASKED_HEADERS = ("authorization", "x-linkding-token", "cookie")


class InvalidParameter(ValueError):
    pass


class RelayResponse(NamedTuple):
    status: int
    headers: Dict[str, str]
    body: bytes


def _dumps(obj) -> str:
    # Same shape as JSON.stringify: compact, non-ASCII untouched.
    return json.dumps(obj, ensure_ascii=False, separators=(",", ":"), allow_nan=False)


def _reject_constant(name: str):
    raise ValueError(f"Invalid JSON constant: {name}")


def json_response(status: int, payload: dict) -> RelayResponse:
    return RelayResponse(status, dict(JSON_HEADERS), _dumps(payload).encode("utf-8"))


def _upstream_timeout() -> Optional[float]:
    raw = os.getenv("UPSTREAM_TIMEOUT_S", "10").strip().lower()
    if raw in ("", "0", "none"):
        return None
    return float(raw)


def _sanitize_headers(h: Mapping[str, str]) -> Dict[str, str]:
    return {k: ("***" if k.lower() in _MASKED_HEADERS else v) for k, v in h.items()}


def parse_target(url: str) -> str:
    """Return the ``url`` query parameter of an inbound request URL.

    Only the query portion matters, so ``url`` may be a bare path such as
    ``/api/fetch?url=...``. Raises InvalidParameter unless the target is an
    absolute http(s) URL.
    """
    query = urlsplit(url).query
    values = parse_qs(query, keep_blank_values=True).get("url")
    target = values[0] if values else ""
    if not target or not _TARGET_RE.match(target):
        raise InvalidParameter(INVALID_URL_MESSAGE)
    return target


def authorization_header(headers: Mapping[str, str]) -> Optional[str]:
    """Normalize the caller's token to the upstream ``Token <value>`` scheme."""
    token = headers.get("x-linkding-token") or headers.get("authorization")
    if not token:
        return None
    return token if token.startswith("Token ") else f"Token {token}"


def fetch_envelope(target: str, authorization: Optional[str]) -> RelayResponse:
    upstream_headers: Dict[str, str] = {}
    if authorization:
        upstream_headers["Authorization"] = authorization

    started = time.perf_counter()
    with httpx.Client(timeout=_upstream_timeout(), follow_redirects=True) as client:
        resp = client.get(target, headers=upstream_headers)

    content_type = resp.headers.get("content-type", "")
    if "application/json" in content_type:
        body = _dumps(resp.json(parse_constant=_reject_constant))
    else:
        body = resp.text

    telemetry = {
        "event": "relay_call",
        "method": "GET",
        "host": resp.url.host,
        "status": resp.status_code,
        "elapsed_ms": round((time.perf_counter() - started) * 1000, 2),
    }
    logger.info("relay_call: " + json.dumps(telemetry))

    return json_response(resp.status_code, {"contentType": content_type, "body": body})


def handle(method: str, url: str, headers: Mapping[str, str]) -> RelayResponse:
    """Relay one inbound request to its ``url`` target.

    ``headers`` may use any casing. Every failure is turned into a JSON error
    response, so this never raises.
    """
    headers = {k.lower(): v for k, v in headers.items()}

    if os.getenv("DEBUG_REQUEST_LOG", "false").lower() == "true":
        try:
            debug_payload = {
                "method": method.upper(),
                "path": urlsplit(url).path,
                "headers": _sanitize_headers(headers),
            }
            logger.info("http_request_debug: " + json.dumps(debug_payload))
        except Exception:
            # Never fail the request due to debug logging
            pass

    if method.upper() == "OPTIONS":
        return RelayResponse(200, dict(PREFLIGHT_HEADERS), b"")

    try:
        target = parse_target(url)
        return fetch_envelope(target, authorization_header(headers))
    except InvalidParameter as e:
        logger.warning("invalid_target", extra={"url": url})
        return json_response(400, {"error": str(e)})
    except Exception as e:
        logger.exception("Error relaying request", extra={"url": url})
        return json_response(500, {"error": str(e) or FALLBACK_ERROR_MESSAGE})
