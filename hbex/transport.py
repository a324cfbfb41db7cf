"""Request signing, value conversion and HTTP helpers."""

from __future__ import annotations

import base64
import gzip
import hashlib
import hmac
import uuid
from datetime import datetime, timezone
from typing import Any, Mapping, Optional
from urllib.parse import urlencode

import requests

from hbex.models import ExchangeError

_TIMEOUT = 10.0


def _encode_query(params: Mapping[str, str]) -> str:
    """Encode parameters sorted by key, as the signature scheme requires."""
    return urlencode(sorted(params.items()))


def hmac_sha256_base64(secret: str, payload: str) -> str:
    """Return the base64 HMAC-SHA256 of payload keyed by secret."""
    digest = hmac.new(secret.encode(), payload.encode(), hashlib.sha256).digest()
    return base64.b64encode(digest).decode()


def sign_params(
    method: str,
    endpoint: str,
    path: str,
    params: Mapping[str, str],
    access_key: str,
    secret_key: str,
    now: Optional[datetime] = None,
) -> dict[str, str]:
    """Return a copy of params with the access key, timestamp and signature added."""
    moment = now if now is not None else datetime.now(timezone.utc)
    if moment.tzinfo is not None:
        moment = moment.astimezone(timezone.utc)
    signed = dict(params)
    signed["AccessKeyId"] = access_key
    signed["SignatureMethod"] = "HmacSHA256"
    signed["SignatureVersion"] = "2"
    signed["Timestamp"] = moment.strftime("%Y-%m-%dT%H:%M:%S")
    domain = endpoint.replace("https://", "")
    payload = f"{method}\n{domain}\n{path}\n{_encode_query(signed)}"
    signed["Signature"] = hmac_sha256_base64(secret_key, payload)
    return signed


def float_to_string(value: float, precision: int) -> str:
    """Format value with a fixed number of decimal places."""
    return f"{float(value):.{int(precision)}f}"


def to_float(value: Any) -> float:
    """Convert a number or numeric string to float; 0.0 when it cannot be."""
    try:
        return float(value)
    except (TypeError, ValueError):
        return 0.0


def to_int(value: Any) -> int:
    """Convert a number or integer string to int; 0 when it cannot be."""
    if isinstance(value, str):
        try:
            return int(value.strip())
        except ValueError:
            return 0
    try:
        return int(value)
    except (TypeError, ValueError, OverflowError):
        return 0


def generate_client_id(length: int = 32) -> str:
    """Return a random hexadecimal client order id of at most 32 characters."""
    return uuid.uuid4().hex[:length]


def gzip_decompress(data: bytes) -> bytes:
    return gzip.decompress(data)


def _check(response: requests.Response) -> None:
    if response.status_code != 200:
        raise ExchangeError(
            f"HttpStatusCode:{response.status_code} ,Desc:{response.text}"
        )


def http_get_json(session: requests.Session, url: str) -> Any:
    """GET url and return the decoded JSON body."""
    response = session.get(url, timeout=_TIMEOUT)
    _check(response)
    try:
        return response.json()
    except ValueError as exc:
        raise ExchangeError(f"invalid json response: {response.text}") from exc


def http_post_json(
    session: requests.Session,
    url: str,
    body: str,
    headers: Optional[Mapping[str, str]] = None,
) -> bytes:
    """POST body to url and return the raw response bytes."""
    response = session.post(
        url, data=body.encode(), headers=dict(headers or {}), timeout=_TIMEOUT
    )
    _check(response)
    return response.content