"""Synchronous authenticated request dispatcher.

Executes requests against a protected endpoint, intercepts authorization
failures, and replays every affected request once after a single
re-authorization.
"""

from __future__ import annotations

from concurrent.futures import Future
from contextlib import nullcontext
from typing import TYPE_CHECKING, Any, Self

import httpx

from .config import DispatcherConfig
from .core.coordinator import SingleFlightCoordinator
from .core.errors import ErrorFactory
from .core.results import failure_result, result_from_exception, result_from_response
from .http import BearerTokenSigner, create_http_client
from .models import AuthorizationState, DispatchResult, Outcome, PendingRequest
from .telemetry import configure_telemetry, get_logger, record_outcome, trace_operation

if TYPE_CHECKING:
    from .errors import AuthDispatchError
    from .models import ResultCallback
    from .types import Authorizer, Signer, Transport


class AuthenticatedDispatcher:
    """Thread-safe dispatcher for requests to a protected endpoint.

    The authorization runs on the thread whose request triggered it; requests
    parked meanwhile are replayed, in order, on that same thread.

    Usage::

        def on_result(result: DispatchResult) -> None:
            try:
                payload = result.json()
            except AuthDispatchError as e:
                ...

        dispatcher.perform(request, on_result)
    """

    def __init__(
        self,
        transport: Transport,
        authorizer: Authorizer,
        signer: Signer | None = None,
        *,
        config: DispatcherConfig | None = None,
        owns_transport: bool = False,
    ) -> None:
        """Initialize dispatcher.

        Args:
            transport: Sends requests, e.g. an ``httpx.Client``.
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
        self._logger = get_logger()

    @classmethod
    def from_config(
        cls,
        config: DispatcherConfig,
        authorizer: Authorizer,
        signer: Signer | None = None,
    ) -> Self:
        """Create dispatcher with its own configured HTTP client.

        Also applies ``config.telemetry`` to the dispatcher's tracer and logger.
        """
        configure_telemetry(config.telemetry)
        return cls(
            create_http_client(config),
            authorizer,
            signer,
            config=config,
            owns_transport=True,
        )

    def __enter__(self) -> Self:
        return self

    def __exit__(self, *args: Any) -> None:
        self.close()

    def close(self) -> None:
        """Close the HTTP client if the dispatcher owns it."""
        if self._owns_transport:
            self._transport.close()  # type: ignore[attr-defined]

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

    def perform(
        self,
        request: httpx.Request,
        callback: ResultCallback,
        *,
        retry: bool = True,
    ) -> None:
        """Execute ``request`` and deliver its result to ``callback``.

        If an authorization is in flight the request is parked until it
        resolves, even when ``retry`` is False. An authorization failure with
        ``retry`` enabled parks the request and starts an authorization;
        with ``retry`` disabled it is delivered as a failure.

        Args:
            request: Request to execute.
            callback: Invoked exactly once with the result.
            retry: Whether an authorization failure may trigger a replay.
        """
        self._perform(PendingRequest(request, callback), retry=retry)

    def fetch(self, request: httpx.Request, *, retry: bool = True) -> DispatchResult:
        """Execute ``request`` and wait for its result.

        Blocks while the request is parked for re-authorization.
        """
        future: Future[DispatchResult] = Future()
        self.perform(request, future.set_result, retry=retry)
        return future.result()

    def request(
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
        return self.fetch(request, retry=retry)

    def attempt_authorization(self) -> None:
        """Start an authorization unless one is already in flight."""
        if self._coordinator.begin():
            self._run_authorization()

    def _perform(
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

        result = self._send(pending.request, retried=retried)

        if result.outcome == Outcome.AUTHORIZATION_FAILURE and retry:
            self._logger.info(
                "Authorization failure, queueing request",
                method=pending.request.method,
                url=str(pending.request.url),
                status_code=result.status_code,
            )
            if self._coordinator.enqueue_and_begin(pending):
                self._run_authorization()
            return

        pending.deliver(result)

    def _send(self, request: httpx.Request, *, retried: bool) -> DispatchResult:
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
                response = self._transport.send(request)
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

    def _run_authorization(self) -> None:
        with trace_operation("authorization_cycle"):
            self._logger.info("Authorization started")
            try:
                credential = self._authorizer.authorize()
            except BaseException as e:
                self._fail_all(self._coordinator.finish(), ErrorFactory.authorization_denied(e))
                if not isinstance(e, Exception):
                    raise
                return

            self._credential = credential
            drained = self._coordinator.finish()
            self._logger.info("Authorization succeeded", replaying=len(drained))
            self._retry_all(drained, credential)

    def _retry_all(self, drained: list[PendingRequest], credential: Any) -> None:
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
            self._perform(pending, retry=False, retried=True)

    def _fail_all(self, drained: list[PendingRequest], error: AuthDispatchError) -> None:
        self._logger.warning(
            "Authorization failed, failing parked requests",
            count=len(drained),
            error=error.message,
            correlation_id=error.correlation_id,
        )
        for pending in drained:
            pending.deliver(failure_result(pending.request, error))
