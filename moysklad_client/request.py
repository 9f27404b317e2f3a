"""
Generic request builder.

One RequestBuilder issues one HTTP call against a path (relative to the API
root, or an absolute URL) and decodes the body into a result shape.

Usage:
    page = (
        RequestBuilder(client, "entity/cashout", Paged(CashOut))
        .set_params(Params().with_limit(10))
        .get()
    )
    created = RequestBuilder(client, "entity/cashout", CashOut).post(cash_out)
    removed = RequestBuilder(client, f"entity/cashout/{id}").delete()
"""

from __future__ import annotations

import json
import logging
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import httpx

from .codec import Shape, as_shape, dumps
from .context import Context
from .errors import (
    CancelledError,
    DeadlineExceededError,
    NotFoundError,
    RemoteAPIError,
    RequestTimeoutError,
    TransportError,
)
from .params import Params

if TYPE_CHECKING:
    from .client import MoySkladClient

logger = logging.getLogger(__name__)

T = TypeVar("T")


@dataclass
class RawResponse:
    """Fully read HTTP response."""
    method: str
    url: str
    status_code: int
    headers: httpx.Headers
    content: bytes

    @property
    def ok(self) -> bool:
        return self.status_code < 400

    def json(self) -> Any:
        from .codec import loads

        return loads(self.content)

    def raise_for_error(self) -> None:
        """Raise the typed RemoteAPIError for a 4xx/5xx response."""
        if self.ok:
            return
        try:
            body = json.loads(self.content) if self.content else None
        except ValueError:
            body = None
        fallback = self.content[:200].decode("utf-8", errors="replace") if body is None else ""
        raise RemoteAPIError.from_body(self.status_code, body, fallback=fallback)


def _send(
    http: httpx.Client,
    method: str,
    url: str,
    query: list[tuple[str, str]] | None,
    content: bytes | None,
    headers: dict[str, str],
    timeout: float,
    ctx: Context,
) -> RawResponse:
    request = http.build_request(
        method,
        url,
        params=query,
        content=content,
        headers=headers,
        timeout=timeout,
    )
    response = http.send(request, stream=True)
    try:
        chunks: list[bytes] = []
        # Cancellation is observed between body chunks
        for chunk in response.iter_bytes():
            ctx.raise_if_done()
            chunks.append(chunk)
        ctx.raise_if_done()
    finally:
        response.close()
    return RawResponse(
        method=method,
        url=str(request.url),
        status_code=response.status_code,
        headers=response.headers,
        content=b"".join(chunks),
    )


def execute(
    client: MoySkladClient,
    method: str,
    path: str,
    params: Params | None = None,
    body: Any = None,
    ctx: Context | None = None,
) -> RawResponse:
    """
    Perform one HTTP call. Never retries.

    Raises:
        CancelledError: ctx was cancelled before or during the call
        DeadlineExceededError: ctx deadline passed
        RequestTimeoutError: The service did not answer within the timeout
        TransportError: Connection, DNS, TLS or protocol failure
    """
    ctx = ctx or Context.background()
    ctx.raise_if_done()

    config = client.config
    url = config.url(path)
    query = params.to_query() if params is not None else None
    content = dumps(body) if body is not None else None
    headers = client._get_headers(has_body=content is not None)
    timeout = ctx.timeout_for(config.timeout)

    logger.debug(f"{method} {url} params={query or []}")

    try:
        if client.http_client is not None:
            response = _send(client.http_client, method, url, query, content, headers, timeout, ctx)
        else:
            with httpx.Client(timeout=config.timeout) as http:
                response = _send(http, method, url, query, content, headers, timeout, ctx)
    except httpx.HTTPError as e:
        # Cancellation or an expired deadline wins over the failure it caused
        if ctx.cancelled:
            raise CancelledError(f"{method} {url}: cancelled") from e
        if ctx.expired:
            raise DeadlineExceededError(f"{method} {url}: context deadline exceeded") from e
        if isinstance(e, httpx.TimeoutException):
            raise RequestTimeoutError(f"{method} {url} timed out") from e
        raise TransportError(f"{method} {url} failed: {e}") from e

    logger.debug(f"{method} {url} -> {response.status_code} ({len(response.content)} bytes)")
    return response


class RequestBuilder(Generic[T]):
    """
    Builds and issues a single request, decoding the body into ``shape``.

    ``shape`` is an entity class (single object) or a Shape instance such as
    ``Paged(Envelope)`` or ``Many(CashOut)``. Params handed to ``set_params``
    are copied; the builder never changes the caller's object.
    """

    def __init__(self, client: MoySkladClient, path: str, shape: Any = None):
        self.client = client
        self.path = path
        self.shape: Shape[T] = as_shape(shape)
        self._params: Params | None = None

    @property
    def params(self) -> Params | None:
        return self._params

    def set_params(self, params: Params | None) -> RequestBuilder[T]:
        self._params = params.copy() if params is not None else None
        return self

    def send(
        self,
        method: str,
        body: Any = None,
        ctx: Context | None = None,
        check: bool = True,
    ) -> RawResponse:
        """Issue the call and return the undecoded response."""
        response = execute(self.client, method, self.path, self._params, body, ctx)
        if check:
            response.raise_for_error()
        return response

    def get(self, ctx: Context | None = None) -> T:
        return self._decode(self.send("GET", ctx=ctx))

    def post(self, body: Any = None, ctx: Context | None = None) -> T:
        return self._decode(self.send("POST", body, ctx))

    def put(self, body: Any = None, ctx: Context | None = None) -> T:
        return self._decode(self.send("PUT", body, ctx))

    def delete(self, ctx: Context | None = None, missing_ok: bool = False) -> bool:
        """
        Remove the resource.

        Returns:
            True on a successful removal status; False for a missing
            resource when ``missing_ok`` is set

        Raises:
            NotFoundError: The resource does not exist (unless ``missing_ok``)
        """
        try:
            self.send("DELETE", ctx=ctx)
        except NotFoundError:
            if missing_ok:
                return False
            raise
        return True

    def _decode(self, response: RawResponse) -> T:
        if response.status_code == 204 or not response.content.strip():
            return None  # type: ignore[return-value]
        return self.shape.decode(response.content)
