"""Low-level HTTP client for the Archestra API.

Handles authentication headers, per-request timeouts and cancellation.
Status codes are left to the caller: every HTTP response is returned as-is and
only transport failures raise.
"""
from __future__ import annotations
import logging
import os
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Optional, Dict, Any

import requests

from ..context import InvocationContext, background
from ..exceptions import OperationCancelled
from .exceptions import NotAuthenticatedError, TransportError

REQUEST_TIMEOUT = 10
DEFAULT_BASE_URL = "http://localhost:9000/api"
MAX_WORKERS = 4

logger = logging.getLogger(__name__)


class ArchestraClient:
    """HTTP client for the Archestra API.

    Features:
    - One pooled ``requests.Session`` per client
    - Requests run on a worker thread so the caller can stop waiting at once
      when the context is cancelled or its deadline passes
    - Caller deadline (from InvocationContext) overrides the default timeout

    Usage:
        client = ArchestraClient("http://localhost:9000/api", api_key="archestra_...")
        response = client.get("/roles/1b4e28ba-2fa1-11d2-883f-0016d3cca427")
    """

    def __init__(
        self,
        base_url: Optional[str] = None,
        api_key: Optional[str] = None,
        *,
        timeout: float = REQUEST_TIMEOUT,
        session: Optional[requests.Session] = None,
    ):
        """Initialize Archestra client.

        Args:
            base_url: API base URL (defaults to ARCHESTRA_BASE_URL env var)
            api_key: API key sent in the Authorization header
            timeout: Default per-request timeout in seconds
            session: Pre-built session (tests, custom adapters)
        """
        self.base_url = (base_url or os.environ.get("ARCHESTRA_BASE_URL", DEFAULT_BASE_URL)).rstrip("/")
        self._api_key = api_key
        self.timeout = timeout
        self.session = session or requests.Session()
        self._executor = ThreadPoolExecutor(max_workers=MAX_WORKERS, thread_name_prefix="archestra-http")

    def _ensure_authenticated(self) -> None:
        if not self._api_key:
            raise NotAuthenticatedError("No API key configured - set ARCHESTRA_API_KEY")

    def _timeout_for(self, ctx: InvocationContext) -> float:
        remaining = ctx.remaining()
        return self.timeout if remaining is None else remaining

    def _abort(self, method: str, path: str, ctx: InvocationContext) -> OperationCancelled:
        # Drop pooled connections so the abandoned request releases its socket.
        self.session.close()
        reason = "invocation cancelled" if ctx.cancelled else "invocation deadline exceeded"
        logger.debug("%s %s aborted: %s", method, path, reason)
        return OperationCancelled(f"{method} {path} aborted: {reason}")

    def request(
        self,
        method: str,
        path: str,
        *,
        ctx: Optional[InvocationContext] = None,
        json: Optional[Any] = None,
        params: Optional[Dict] = None,
    ) -> requests.Response:
        """Execute one HTTP request.

        The call returns as soon as the response arrives, the context is
        cancelled or the context deadline passes, whichever comes first.

        Args:
            method: HTTP method
            path: API endpoint path (e.g., "/users/<id>/roles")
            ctx: Invocation context carrying cancellation and deadline
            json: JSON payload
            params: Query parameters

        Returns:
            Response object, whatever its status code

        Raises:
            NotAuthenticatedError: If no API key is configured
            OperationCancelled: If the context was cancelled or its deadline passed
            TransportError: On network/connection failure
        """
        self._ensure_authenticated()
        ctx = ctx or background()
        ctx.check()

        url = f"{self.base_url}{path}"
        headers = {
            "Authorization": self._api_key,
            "Accept": "application/json",
        }

        wake = threading.Event()
        future = self._executor.submit(
            self.session.request,
            method,
            url,
            json=json,
            params=params,
            headers=headers,
            timeout=self._timeout_for(ctx),
        )
        future.add_done_callback(lambda _: wake.set())
        unregister = ctx.on_cancel(wake.set)
        try:
            wake.wait(ctx.remaining())
        finally:
            unregister()

        if ctx.cancelled or not future.done():
            future.cancel()
            raise self._abort(method, path, ctx)

        try:
            resp = future.result()
        except requests.RequestException as exc:
            if ctx.cancelled or ctx.expired:
                raise self._abort(method, path, ctx) from exc
            raise TransportError(str(exc), method, url) from exc

        if ctx.cancelled:
            raise OperationCancelled(f"{method} {path} completed after cancellation; result discarded")

        logger.debug("%s %s -> %s", method, path, resp.status_code)
        return resp

    def get(self, path: str, params: Optional[Dict] = None, **kwargs) -> requests.Response:
        return self.request("GET", path, params=params, **kwargs)

    def post(self, path: str, json: Optional[Any] = None, **kwargs) -> requests.Response:
        return self.request("POST", path, json=json, **kwargs)

    def put(self, path: str, json: Optional[Any] = None, **kwargs) -> requests.Response:
        return self.request("PUT", path, json=json, **kwargs)

    def delete(self, path: str, **kwargs) -> requests.Response:
        return self.request("DELETE", path, **kwargs)

    def close(self) -> None:
        self.session.close()
        self._executor.shutdown(wait=False, cancel_futures=True)


def create_client_from_config(config) -> ArchestraClient:
    """Build a client from a loaded GatewayConfig.

    Args:
        config: ``archestra_rbac.config.GatewayConfig`` instance

    Returns:
        ArchestraClient ready for use
    """
    return ArchestraClient(
        config.base_url,
        config.api_key_resolved,
        timeout=config.request_timeout,
    )
