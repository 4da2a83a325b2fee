"""OAuth Device Authorization Flow (RFC 8628) with PKCE (RFC 7636).

User runs `tokendokey login -c <client>`, opens the printed URL in a
browser, authenticates, presses Enter, and tokens are stored locally.

Flow:
1. Generate a fresh PKCE pair
2. Request a device code (client_id + code_challenge)
3. Display verification_uri_complete, or verification_uri + user_code
4. Wait for the operator to confirm in the terminal
5. Poll the token endpoint (device_code + code_verifier) until authorized
"""

from __future__ import annotations

__all__ = [
    "DeviceCodeResponse",
    "DeviceFlow",
    "DeviceFlowCancelledError",
    "DeviceFlowConfigError",
    "DeviceFlowDeniedError",
    "DeviceFlowError",
    "DeviceFlowExpiredError",
    "PollOnceResult",
    "run_device_flow",
]

import time
from dataclasses import dataclass
from typing import TYPE_CHECKING, Any, Callable, Literal

import httpx

from tokendokey.constants import (
    DEVICE_CODE_GRANT_TYPE,
    DEVICE_FLOW_POLL_INTERVAL_SECONDS,
    DEVICE_FLOW_SLOW_DOWN_INCREMENT_SECONDS,
    OAUTH_CLIENT_TIMEOUT_SECONDS,
    OFFLINE_ACCESS_SCOPE,
)
from tokendokey.exceptions import (
    ConfigMalformedError,
    ConfigurationError,
    IssuerError,
    NetworkFailureError,
    TokenDokeyError,
)
from tokendokey.security.auth.pkce import PKCEPair
from tokendokey.security.auth.token_parser import MAX_ERROR_BODY_CHARS, json_body, parse_token_response
from tokendokey.security.auth.token_storage import TokenPair
from tokendokey.telemetry.system_logger import get_system_logger

if TYPE_CHECKING:
    from tokendokey.config import ClientConfig

PollStatus = Literal["pending", "slow_down", "complete", "expired", "denied"]


def _optional_str(value: Any) -> str | None:
    if value is None or value == "":
        return None
    return str(value)


def _optional_int(value: Any) -> int | None:
    if isinstance(value, bool) or not isinstance(value, int):
        return None
    return value


@dataclass
class DeviceCodeResponse:
    """Response from the device authorization request.

    Attributes:
        device_code: Code used to poll for tokens (never shown to the user).
        user_code: Code the user enters in the browser.
        verification_uri: URL the user opens to authenticate.
        verification_uri_complete: URL with the code embedded (optional).
        interval: Polling interval suggested by the issuer.
        expires_in: Seconds until the codes expire, if reported.
    """

    device_code: str
    user_code: str | None = None
    verification_uri: str | None = None
    verification_uri_complete: str | None = None
    interval: int = DEVICE_FLOW_POLL_INTERVAL_SECONDS
    expires_in: int | None = None

    @classmethod
    def from_response(cls, data: dict[str, Any]) -> "DeviceCodeResponse":
        """Parse from the issuer's JSON body.

        Raises:
            KeyError: If device_code is missing or empty.
        """
        device_code = _optional_str(data.get("device_code"))
        if device_code is None:
            raise KeyError("device_code")

        interval = _optional_int(data.get("interval"))
        expires_in = _optional_int(data.get("expires_in"))
        return cls(
            device_code=device_code,
            user_code=_optional_str(data.get("user_code")),
            verification_uri=_optional_str(data.get("verification_uri")),
            verification_uri_complete=_optional_str(data.get("verification_uri_complete")),
            interval=interval if interval is not None else DEVICE_FLOW_POLL_INTERVAL_SECONDS,
            expires_in=expires_in,
        )


@dataclass(frozen=True)
class PollOnceResult:
    """Result of a single poll attempt.

    Attributes:
        status: "pending", "slow_down", "complete", "expired" or "denied".
        tokens: Token pair if status is "complete", None otherwise.
        error_message: Why the attempt did not complete, if known.
    """

    status: PollStatus
    tokens: TokenPair | None = None
    error_message: str | None = None


class DeviceFlowConfigError(ConfigurationError):
    """Client config has no device authorization endpoint."""

    failure_type = "device_flow_not_configured"


class DeviceFlowError(IssuerError):
    """Device flow rejected by the issuer."""

    pass


class DeviceFlowExpiredError(DeviceFlowError):
    """Device code expired before the user authenticated."""

    pass


class DeviceFlowDeniedError(DeviceFlowError):
    """User denied the authorization request."""

    pass


class DeviceFlowCancelledError(TokenDokeyError):
    """Polling was stopped by the caller before the user authenticated."""

    failure_type = "device_flow_cancelled"


class DeviceFlow:
    """OAuth Device Authorization Flow implementation.

    The poll loop never sleeps on its own: `sleep` and `should_continue`
    are injected so tests (and embedding callers) control time and
    termination.

    Usage:
        with DeviceFlow(config) as flow:
            pkce = PKCEPair.generate()
            device_code = flow.request_device_code(pkce)
            print(device_code.verification_uri_complete)
            input()
            tokens = flow.poll_for_token(device_code, pkce)
    """

    def __init__(
        self,
        config: "ClientConfig",
        http_client: httpx.Client | None = None,
        sleep: Callable[[float], None] = time.sleep,
        poll_interval: int = DEVICE_FLOW_POLL_INTERVAL_SECONDS,
        should_continue: Callable[[int], bool] | None = None,
    ) -> None:
        """Initialize device flow.

        Args:
            config: Client configuration with token and device endpoints.
            http_client: Optional httpx client (for testing).
            sleep: Called with the delay between polls.
            poll_interval: Seconds between polls (the issuer's suggested
                interval is not used).
            should_continue: Called with the attempt number before each
                poll; returning False cancels the flow.
        """
        self._config = config
        self._client = http_client or httpx.Client(timeout=OAUTH_CLIENT_TIMEOUT_SECONDS)
        self._owns_client = http_client is None
        self._sleep = sleep
        self._poll_interval = poll_interval
        self._should_continue = should_continue
        self._logger = get_system_logger()

    def __enter__(self) -> "DeviceFlow":
        return self

    def __exit__(self, *args: object) -> None:
        self.close()

    def close(self) -> None:
        """Close HTTP client if we own it."""
        if self._owns_client:
            self._client.close()

    def request_device_code(self, pkce: PKCEPair, offline: bool = False) -> DeviceCodeResponse:
        """Request a device code bound to a PKCE challenge.

        Args:
            pkce: Fresh PKCE pair for this login attempt.
            offline: Request the offline_access scope.

        Returns:
            DeviceCodeResponse with user_code and verification URIs.

        Raises:
            DeviceFlowConfigError: If no device authorization endpoint is configured.
            DeviceFlowError: If the issuer returns an error or an unusable body.
            NetworkFailureError: If the endpoint cannot be reached.
            ConfigMalformedError: If device_code_url is not a usable URL.
        """
        if not self._config.device_code_url:
            raise DeviceFlowConfigError(
                "No device authorization endpoint configured for this client. "
                "Re-run 'tokendokey init' with --device-url."
            )

        data = {
            "client_id": self._config.client_id,
            "code_challenge": pkce.challenge,
            "code_challenge_method": pkce.method,
        }
        if offline:
            data["scope"] = OFFLINE_ACCESS_SCOPE

        try:
            response = self._client.post(self._config.device_code_url, data=data)
        except httpx.HTTPError as e:
            raise NetworkFailureError(f"HTTP error requesting device code: {e}") from e
        except httpx.InvalidURL as e:
            raise ConfigMalformedError(f"Invalid device authorization URL in client config: {e}") from e

        body = json_body(response)
        raw = response.text[:MAX_ERROR_BODY_CHARS]

        if body is not None and body.get("error"):
            error = str(body["error"])
            description = _optional_str(body.get("error_description"))
            raise DeviceFlowError(
                f"Failed to request device code: {description or error}",
                status_code=response.status_code,
                error=error,
                error_description=description,
                body=raw,
            )

        if body is None:
            raise DeviceFlowError(
                f"Failed to request device code: response is not JSON (HTTP {response.status_code})",
                status_code=response.status_code,
                body=raw,
            )

        if not response.is_success:
            raise DeviceFlowError(
                f"Failed to request device code (HTTP {response.status_code})",
                status_code=response.status_code,
                body=raw,
            )

        try:
            return DeviceCodeResponse.from_response(body)
        except KeyError as e:
            raise DeviceFlowError(
                "Failed to request device code: response has no device_code",
                status_code=response.status_code,
                body=raw,
            ) from e

    def poll_once(self, device_code: DeviceCodeResponse, pkce: PKCEPair) -> PollOnceResult:
        """Poll the token endpoint once (non-blocking).

        Args:
            device_code: Response from request_device_code().
            pkce: The pair whose challenge was sent with the device request.

        Returns:
            PollOnceResult. Any response that is neither a success nor a
            terminal RFC 8628 error is reported as "pending".

        Raises:
            NetworkFailureError: If the token endpoint cannot be reached.
            ConfigMalformedError: If token_issue_url is not a usable URL.
        """
        try:
            response = self._client.post(
                self._config.token_issue_url,
                data={
                    "grant_type": DEVICE_CODE_GRANT_TYPE,
                    "device_code": device_code.device_code,
                    "client_id": self._config.client_id,
                    "code_verifier": pkce.verifier,
                },
            )
        except httpx.HTTPError as e:
            raise NetworkFailureError(f"HTTP error polling for token: {e}") from e
        except httpx.InvalidURL as e:
            raise ConfigMalformedError(f"Invalid token endpoint URL in client config: {e}") from e

        data = json_body(response)

        if response.status_code == 200 and data is not None:
            tokens = parse_token_response(data)
            if tokens.access_token:
                return PollOnceResult(status="complete", tokens=tokens)

        error = str(data.get("error") or "") if data is not None else ""

        if error == "slow_down":
            return PollOnceResult(status="slow_down", error_message="Issuer asked to slow down")

        if error == "expired_token":
            return PollOnceResult(
                status="expired",
                error_message="Device code expired. Run 'tokendokey login' again.",
            )

        if error == "access_denied":
            return PollOnceResult(status="denied", error_message="Authorization was denied.")

        if error == "authorization_pending":
            return PollOnceResult(status="pending")

        return PollOnceResult(
            status="pending",
            error_message=f"Token not issued yet (HTTP {response.status_code}{', ' + error if error else ''})",
        )

    def poll_for_token(
        self,
        device_code: DeviceCodeResponse,
        pkce: PKCEPair,
        on_poll: Callable[[PollOnceResult], None] | None = None,
    ) -> TokenPair:
        """Poll the token endpoint until the user completes authentication.

        Polls immediately, then waits the fixed interval between attempts.
        There is no attempt cap; only a terminal issuer error, a transport
        failure or should_continue() returning False stop the loop.

        Args:
            device_code: Response from request_device_code().
            pkce: PKCE pair for this login attempt.
            on_poll: Optional callback receiving each non-final result.

        Returns:
            TokenPair with a non-empty access token.

        Raises:
            DeviceFlowExpiredError: If the device code expires.
            DeviceFlowDeniedError: If the user denies authorization.
            DeviceFlowCancelledError: If should_continue() returns False.
            NetworkFailureError: If the token endpoint cannot be reached.
        """
        interval = self._poll_interval
        attempt = 0

        while True:
            attempt += 1
            if self._should_continue is not None and not self._should_continue(attempt):
                raise DeviceFlowCancelledError(f"Device login cancelled after {attempt - 1} poll(s)")

            result = self.poll_once(device_code, pkce)

            if result.status == "complete" and result.tokens is not None:
                return result.tokens

            if result.status == "expired":
                raise DeviceFlowExpiredError(result.error_message or "Device code expired", error="expired_token")

            if result.status == "denied":
                raise DeviceFlowDeniedError(result.error_message or "Authorization denied", error="access_denied")

            if result.status == "slow_down":
                interval += DEVICE_FLOW_SLOW_DOWN_INCREMENT_SECONDS

            self._logger.info(
                {
                    "event": "device_flow_poll_pending",
                    "message": f"{result.error_message or 'Waiting for authorization'}; retrying in {interval}s",
                    "attempt": attempt,
                    "interval_seconds": interval,
                }
            )
            if on_poll:
                on_poll(result)

            self._sleep(interval)


def run_device_flow(
    config: "ClientConfig",
    display_callback: Callable[[DeviceCodeResponse], None],
    wait_for_operator: Callable[[], None],
    offline: bool = False,
    poll_callback: Callable[[PollOnceResult], None] | None = None,
    http_client: httpx.Client | None = None,
    sleep: Callable[[float], None] = time.sleep,
    should_continue: Callable[[int], bool] | None = None,
) -> TokenPair:
    """Run the complete device flow with callbacks for display.

    Args:
        config: Client configuration.
        display_callback: Shows the verification URI (and user code).
        wait_for_operator: Blocks until the operator confirms in the terminal.
        offline: Request an offline token instead of a regular refresh token.
        poll_callback: Optional callback receiving each pending poll result.
        http_client: Optional httpx client (for testing).
        sleep: Delay function between polls.
        should_continue: Optional predicate to stop polling.

    Returns:
        TokenPair ready for storage.

    Raises:
        TokenDokeyError: If any step of the flow fails.

    Example:
        def show(code):
            print(code.verification_uri_complete or code.verification_uri)

        tokens = run_device_flow(config, show, input)
        store.save_tokens("acme", tokens)
    """
    pkce = PKCEPair.generate()
    with DeviceFlow(config, http_client=http_client, sleep=sleep, should_continue=should_continue) as flow:
        device_code = flow.request_device_code(pkce, offline=offline)
        display_callback(device_code)
        wait_for_operator()
        return flow.poll_for_token(device_code, pkce, on_poll=poll_callback)
