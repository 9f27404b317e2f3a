"""
Asynchronous operations.

A long list query can be submitted with ``async=true``. The service answers
202 Accepted with the status URL in ``Location`` and the result URL in
``Content-Location``. The returned handle is polled until the job is done.

Usage:
    op = client.cash_out.get_list_async(Params().with_limit(1000))

    # Drive it yourself
    while op.poll() is AsyncState.PENDING:
        time.sleep(op.poll_interval_hint)
    page = op.result()

    # Or let the handle poll with backoff
    page = op.wait(timeout=120)
"""

from __future__ import annotations

import logging
import time
from enum import Enum
from typing import TYPE_CHECKING, Any, Generic, TypeVar

import httpx

from .codec import Shape, as_shape, loads
from .context import Context
from .errors import (
    AsyncOperationError,
    AsyncTimeoutError,
    DecodeError,
    RemoteAPIError,
)
from .params import Params
from .request import RawResponse, RequestBuilder
from .resilience import backoff_delay

if TYPE_CHECKING:
    from .client import MoySkladClient

logger = logging.getLogger(__name__)

T = TypeVar("T")

# ``state`` values of a job status document
_RUNNING_STATES = frozenset({"PENDING", "PROCESSING"})
_FAILED_STATES = frozenset({"ERROR", "API_ERROR", "CANCEL"})
_DONE_STATE = "DONE"
_STATUS_STATES = _RUNNING_STATES | _FAILED_STATES | {_DONE_STATE}


class AsyncState(str, Enum):
    PENDING = "pending"
    READY = "ready"
    FAILED = "failed"


def _retry_after(headers: httpx.Headers) -> float | None:
    value = headers.get("Retry-After")
    if value is None:
        return None
    try:
        return max(0.0, float(value))
    except ValueError:
        return None


def _is_status_document(data: Any) -> bool:
    return (
        isinstance(data, dict)
        and isinstance(data.get("state"), str)
        and data["state"] in _STATUS_STATES
        and "rows" not in data
    )


class AsyncOperation(Generic[T]):
    """
    Handle for a submitted asynchronous job.

    States move only PENDING -> READY or PENDING -> FAILED. Once terminal,
    ``poll`` makes no further calls and ``result`` replays the cached value
    or raises the cached error. Abandoning a handle is not reported to the
    service.
    """

    def __init__(
        self,
        client: MoySkladClient,
        status_url: str,
        shape: Any,
        result_url: str | None = None,
        poll_interval_hint: float | None = None,
    ):
        self.client = client
        self.status_url = status_url
        self.result_url = result_url
        self.shape: Shape[T] = as_shape(shape)
        self.poll_interval_hint = (
            poll_interval_hint
            if poll_interval_hint is not None
            else client.config.async_poll_interval
        )
        self._state = AsyncState.PENDING
        self._result: T | None = None
        self._error: AsyncOperationError | None = None

    def __repr__(self) -> str:
        return f"AsyncOperation({self.status_url!r}, state={self._state.value})"

    @classmethod
    def submit(
        cls,
        client: MoySkladClient,
        path: str,
        shape: Any,
        params: Params | None = None,
        ctx: Context | None = None,
    ) -> AsyncOperation[T]:
        """
        Issue the query with ``async=true``.

        Raises:
            DecodeError: The service did not hand out a status URL
        """
        query = (params.copy() if params is not None else Params()).with_async()
        response = RequestBuilder(client, path).set_params(query).send("GET", ctx=ctx)

        status_url = response.headers.get("Location")
        if not status_url:
            raise DecodeError(
                f"Async submit to {response.url} returned {response.status_code} without a Location header"
            )
        result_url = response.headers.get("Content-Location")
        logger.debug(f"Async job submitted: status={status_url} result={result_url}")
        return cls(
            client,
            status_url,
            shape,
            result_url=result_url,
            poll_interval_hint=_retry_after(response.headers),
        )

    @property
    def state(self) -> AsyncState:
        return self._state

    @property
    def done(self) -> bool:
        return self._state is not AsyncState.PENDING

    def poll(self, ctx: Context | None = None) -> AsyncState:
        """
        Check the job once.

        Raises:
            DecodeError: The status response is neither a status document,
                an error document nor the expected result
            TransportError, CancelledError: The status call itself failed;
                the handle stays PENDING
        """
        if self.done:
            return self._state

        response = RequestBuilder(self.client, self.status_url).send("GET", ctx=ctx, check=False)
        hint = _retry_after(response.headers)
        if hint is not None:
            self.poll_interval_hint = hint

        if not response.ok:
            try:
                response.raise_for_error()
            except RemoteAPIError as e:
                if e.transient:
                    raise
                self._fail(e)
            return self._state

        data = loads(response.content) if response.content.strip() else None

        if isinstance(data, dict) and "errors" in data:
            self._fail(RemoteAPIError.from_body(response.status_code, data))
        elif _is_status_document(data):
            self._apply_status(data, response, ctx)
        elif data is not None and self.shape.matches(data):
            self._complete(self.shape.decode(response.content))
        else:
            raise DecodeError(f"Unexpected async status response from {self.status_url}")

        return self._state

    def _apply_status(self, data: dict[str, Any], response: RawResponse, ctx: Context | None) -> None:
        state = data["state"]
        if state in _RUNNING_STATES:
            logger.debug(f"Async job {self.status_url} is {state}")
            return
        if state in _FAILED_STATES:
            errors = data.get("errors") if isinstance(data.get("errors"), list) else None
            self._fail(RemoteAPIError(
                response.status_code,
                f"Async job ended in state {state}",
                code=state,
                errors=errors,
            ))
            return

        url = data.get("resultUrl") or self.result_url
        if not url:
            raise DecodeError(f"Async job {self.status_url} is done but has no result URL")
        self._complete(RequestBuilder(self.client, url, self.shape).get(ctx))

    def _complete(self, value: T) -> None:
        self._result = value
        self._state = AsyncState.READY
        logger.debug(f"Async job {self.status_url} is ready")

    def _fail(self, cause: RemoteAPIError) -> None:
        self._error = AsyncOperationError(f"Async job {self.status_url} failed: {cause}", cause=cause)
        self._state = AsyncState.FAILED
        logger.debug(f"Async job {self.status_url} failed: {cause}")

    def result(self) -> T:
        """
        Cached outcome of a finished job.

        Raises:
            AsyncOperationError: The job failed, or is still pending
        """
        if self._state is AsyncState.READY:
            return self._result  # type: ignore[return-value]
        if self._state is AsyncState.FAILED:
            raise self._error  # type: ignore[misc]
        raise AsyncOperationError(f"Async job {self.status_url} has not finished yet")

    def wait(self, ctx: Context | None = None, timeout: float | None = None) -> T:
        """
        Poll until the job is done and return its result.

        The delay starts at ``poll_interval_hint`` and doubles after every
        pending poll, capped at ``config.async_poll_max_interval`` and never
        shorter than ``config.async_poll_interval``.

        Args:
            ctx: Cancels polling (including the sleeps in between)
            timeout: Seconds to wait; defaults to ``config.async_poll_timeout``

        Raises:
            AsyncTimeoutError: Still pending after ``timeout``
            AsyncOperationError: The job failed
            CancelledError: ctx was cancelled or its deadline passed
        """
        ctx = ctx or Context.background()
        config = self.client.config
        if timeout is None:
            timeout = config.async_poll_timeout
        deadline = time.monotonic() + timeout

        attempt = 0
        while self.poll(ctx) is AsyncState.PENDING:
            remaining = deadline - time.monotonic()
            if remaining <= 0:
                raise AsyncTimeoutError(
                    f"Async job {self.status_url} still pending after {timeout:.1f}s"
                )
            # A zero Retry-After must not turn into a busy loop
            base = max(self.poll_interval_hint, config.async_poll_interval)
            delay = max(backoff_delay(attempt, base, config.async_poll_max_interval), config.async_poll_interval)
            ctx.sleep(min(delay, remaining))
            attempt += 1
        return self.result()
