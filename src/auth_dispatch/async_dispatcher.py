"""Async authenticated request dispatcher.

Same semantics as the synchronous dispatcher, with the authorization running
in a background task and replays started as tasks in queue order.
"""

from __future__ import annotations

import asyncio
from contextlib import nullcontext
from typing import TYPE_CHECKING, Any, Self

import httpx

from .config import DispatcherConfig
from .core.coordinator import SingleFlightCoordinator
from .core.errors import ErrorFactory
from .core.results import failure_result, result_from_exception, result_from_response
from .errors import AuthorizationDeniedError, NetworkError
from .http import BearerTokenSigner, create_async_http_client
from .models import AuthorizationState, DispatchResult, Outcome, PendingRequest
from .telemetry import configure_telemetry, get_logger, record_outcome, trace_operation

if TYPE_CHECKING:
    from .errors import AuthDispatchError
    from .models import ResultCallback
    from .types import AsyncAuthorizer, AsyncTransport, Signer


class AsyncAuthenticatedDispatcher:
    """Asynchronous dispatcher for requests to a protected endpoint."""

    def __init__(
        self,
        transport: AsyncTransport,
        authorizer: AsyncAuthorizer,
        signer: Signer | None = None,
        *,
        config: DispatcherConfig | None = None,
        owns_transport: bool = False,
    ) -> None:
        """Initialize async dispatcher.

        Args:
            transport: Sends requests, e.g. an ``httpx.AsyncClient``.
            authorizer: Obtains a fresh credential.
            signer: Attaches the credential to replayed requests.
            config: Dispatcher configuration.
            owns_transport: Close the transport when the dispatcher closes.
        """
        self.config = config or DispatcherConfig()
        self._transport = transport
        self._authorizer = authorizer
        self._signer = signer or BearerTokenSigner()
        self._owns_transport = owns_transport
        self._coordinator = SingleFlightCoordinator()
        self._credential: Any = None
        self._background: set[asyncio.Task[None]] = set()
        self._logger = get_logger()

    @classmethod
    def from_config(
        cls,
        config: DispatcherConfig,
        authorizer: AsyncAuthorizer,
        signer: Signer | None = None,
    ) -> Self:
        """Create dispatcher with its own configured HTTP client.

        Also applies ``config.telemetry`` to the dispatcher's tracer and logger.
        """
        configure_telemetry(config.telemetry)
        return cls(
            create_async_http_client(config),
            authorizer,
            signer,
            config=config,
            owns_transport=True,
        )

    async def __aenter__(self) -> Self:
        return self

    async def __aexit__(self, *args: Any) -> None:
        await self.aclose()

    async def aclose(self, timeout: float | None = None) -> None:
        """Wait for in-flight authorization, then close an owned HTTP client.

        Args:
            timeout: Seconds to wait for authorization cycles, including ones
                started meanwhile, before cancelling them.
                Requests parked on a cancelled authorization are failed.
        """
        loop = asyncio.get_running_loop()
        deadline = None if timeout is None else loop.time() + timeout
        # cycles may start while earlier ones finish
        while self._background:
            remaining = None if deadline is None else max(0.0, deadline - loop.time())
            done, not_done = await asyncio.wait(set(self._background), timeout=remaining)
            self._background.difference_update(done)
            for task in not_done:
                task.cancel()
            if not_done:
                await asyncio.gather(*not_done, return_exceptions=True)
                self._background.difference_update(not_done)
        if self._owns_transport:
            await self._transport.aclose()  # type: ignore[attr-defined]

    @property
    def also_intercept_forbidden(self) -> bool:
        """Check if 403 responses trigger re-authorization."""
        return self.config.also_intercept_forbidden

    @property
    def state(self) -> AuthorizationState:
        """Get current authorization state."""
        return self._coordinator.state

    @property
    def is_authorizing(self) -> bool:
        """Check if an authorization attempt is in flight."""
        return self._coordinator.is_authorizing

    @property
    def pending_count(self) -> int:
        """Get number of requests parked for replay."""
        return self._coordinator.pending_count

    @property
    def credential(self) -> Any:
        """Get the credential returned by the last successful authorization."""
        return self._credential

    async def perform(
        self,
        request: httpx.Request,
        callback: ResultCallback,
        *,
        retry: bool = True,
    ) -> None:
        """Execute ``request`` and deliver its result to ``callback``.

        Returns once the result was delivered or the request was parked for
        replay; a parked request's callback fires after the authorization
        resolves.

        Args:
            request: Request to execute.
            callback: Invoked exactly once with the result.
            retry: Whether an authorization failure may trigger a replay.
        """
        await self._perform(PendingRequest(request, callback), retry=retry)

    async def fetch(self, request: httpx.Request, *, retry: bool = True) -> DispatchResult:
        """Execute ``request`` and await its result."""
        future: asyncio.Future[DispatchResult] = asyncio.get_running_loop().create_future()

        def resolve(result: DispatchResult) -> None:
            if not future.done():
                future.set_result(result)

        await self.perform(request, resolve, retry=retry)
        return await future

    async def request(
        self,
        method: str,
        url: str,
        *,
        retry: bool = True,
        **kwargs: Any,
    ) -> DispatchResult:
        """Build a request with the transport and fetch it."""
        build_request = getattr(self._transport, "build_request", None)
        if build_request is not None:
            request = build_request(method, url, **kwargs)
        else:
            request = httpx.Request(method, url, **kwargs)
        return await self.fetch(request, retry=retry)

    def attempt_authorization(self) -> None:
        """Start an authorization unless one is already in flight.

        Must be called from within the running event loop.
        """
        if self._coordinator.begin():
            self._start_authorization()

    async def wait_for_authorization(self) -> None:
        """Wait until background authorization cycles and their replays finish."""
        while self._background:
            await asyncio.gather(*set(self._background), return_exceptions=True)

    async def _perform(
        self,
        pending: PendingRequest,
        *,
        retry: bool,
        retried: bool = False,
    ) -> None:
        if self._coordinator.park_if_authorizing(pending):
            self._logger.debug(
                "Request parked while authorizing",
                method=pending.request.method,
                url=str(pending.request.url),
            )
            return

        try:
            result = await self._send(pending.request, retried=retried)
        except asyncio.CancelledError:
            pending.deliver(
                failure_result(
                    pending.request,
                    NetworkError("Request was cancelled"),
                    retried=retried,
                )
            )
            raise

        if result.outcome == Outcome.AUTHORIZATION_FAILURE and retry:
            self._logger.info(
                "Authorization failure, queueing request",
                method=pending.request.method,
                url=str(pending.request.url),
                status_code=result.status_code,
            )
            if self._coordinator.enqueue_and_begin(pending):
                self._start_authorization()
            return

        pending.deliver(result)

    async def _send(self, request: httpx.Request, *, retried: bool) -> DispatchResult:
        span = (
            trace_operation(
                "http_dispatch",
                attributes={
                    "http.method": request.method,
                    "http.url": str(request.url),
                    "retried": retried,
                },
            )
            if self.config.telemetry.trace_requests
            else nullcontext()
        )
        with span as active:
            try:
                response = await self._transport.send(request)
            except Exception as e:
                result = result_from_exception(
                    request,
                    e,
                    also_intercept_forbidden=self.also_intercept_forbidden,
                    retried=retried,
                )
            else:
                result = result_from_response(
                    request,
                    response,
                    also_intercept_forbidden=self.also_intercept_forbidden,
                    retried=retried,
                )
            if active is not None:
                record_outcome(active, result)
        return result

    def _start_authorization(self) -> None:
        task = asyncio.get_running_loop().create_task(self._run_authorization())
        self._background.add(task)
        task.add_done_callback(self._on_background_done)

    def _on_background_done(self, task: asyncio.Task[None]) -> None:
        self._background.discard(task)
        if not task.cancelled() and task.exception() is not None:
            self._logger.error(
                "Authorization cycle crashed",
                error=str(task.exception()),
            )

    async def _run_authorization(self) -> None:
        with trace_operation("authorization_cycle"):
            self._logger.info("Authorization started")
            try:
                credential = await self._authorizer.authorize()
            except asyncio.CancelledError:
                self._fail_all(self._coordinator.finish(), self._cancelled_error())
                raise
            except Exception as e:
                self._fail_all(self._coordinator.finish(), ErrorFactory.authorization_denied(e))
                return

            self._credential = credential
            drained = self._coordinator.finish()
            self._logger.info("Authorization succeeded", replaying=len(drained))
            await self._retry_all(drained, credential)

    async def _retry_all(self, drained: list[PendingRequest], credential: Any) -> None:
        replays = []
        for pending in drained:
            try:
                pending.request = self._signer.sign(pending.request, credential) or pending.request
            except Exception as e:
                pending.deliver(
                    failure_result(
                        pending.request,
                        ErrorFactory.signing_failed(e),
                        retried=True,
                    )
                )
                continue
            replays.append(self._perform(pending, retry=False, retried=True))

        if not replays:
            return
        try:
            # gather wraps the coroutines in tasks in list order, so the
            # transport sends start in queue order.
            await asyncio.gather(*replays, return_exceptions=True)
        except asyncio.CancelledError:
            # replays cancelled before reaching the transport never ran
            error = self._cancelled_error()
            for pending in drained:
                if not pending.delivered:
                    pending.deliver(failure_result(pending.request, error, retried=True))
            raise

    def _cancelled_error(self) -> AuthorizationDeniedError:
        return AuthorizationDeniedError(
            "Authorization was cancelled",
            correlation_id=ErrorFactory.generate_correlation_id(),
        )

    def _fail_all(self, drained: list[PendingRequest], error: AuthDispatchError) -> None:
        self._logger.warning(
            "Authorization failed, failing parked requests",
            count=len(drained),
            error=error.message,
            correlation_id=error.correlation_id,
        )
        for pending in drained:
            pending.deliver(failure_result(pending.request, error))
