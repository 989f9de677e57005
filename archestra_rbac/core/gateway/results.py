"""Tagged results returned by every gateway call.

Each call resolves to exactly one of ``Ok``, ``NotFound`` or ``Unexpected``;
transport failures are raised as ``TransportError`` instead.
"""
from __future__ import annotations

from dataclasses import dataclass
from typing import Any, Callable, Generic, Iterable, TypeVar, Union

import requests


T = TypeVar("T")


@dataclass(frozen=True)
class Ok(Generic[T]):
    payload: T = None
    status: int = 200


@dataclass(frozen=True)
class NotFound:
    status: int = 404


@dataclass(frozen=True)
class Unexpected:
    """Status or body the caller did not expect.

    Attributes:
        status: HTTP status code
        body: Raw response text
        reason: Why the response was rejected (e.g. malformed payload)
    """
    status: int
    body: str = ""
    reason: str = ""


GatewayResult = Union[Ok[T], NotFound, Unexpected]


def unexpected(resp: requests.Response, reason: str = "") -> Unexpected:
    return Unexpected(status=resp.status_code, body=resp.text or "", reason=reason)


def parse_json(resp: requests.Response, parser: Callable[[Any], T], ok_statuses: Iterable[int]) -> GatewayResult:
    """Map a response with a JSON body onto ``Ok``/``NotFound``/``Unexpected``.

    Args:
        resp: HTTP response
        parser: Turns the decoded JSON into a model, raising PayloadError on bad shape
        ok_statuses: Status codes that carry the expected payload

    Returns:
        Tagged result; 404 is always NotFound
    """
    if resp.status_code == 404:
        return NotFound(status=404)
    if resp.status_code not in ok_statuses:
        return unexpected(resp)
    try:
        return Ok(payload=parser(resp.json()), status=resp.status_code)
    except ValueError as exc:  # PayloadError and JSON decode errors
        return unexpected(resp, reason=f"malformed response body: {exc}")
