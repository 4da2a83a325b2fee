"""Token acquisition and validation.

- token_validator: unverified JWT expiry policy
- token_storage: TokenPair and the TokenStorage interface
- pkce: RFC 7636 verifier/challenge
- device_flow: RFC 8628 device authorization login
- token_refresh: refresh_token grant
- direct_grant: mTLS password grant
- discovery: OIDC discovery for init
"""

from tokendokey.security.auth.device_flow import (
    DeviceCodeResponse,
    DeviceFlow,
    DeviceFlowCancelledError,
    DeviceFlowConfigError,
    DeviceFlowDeniedError,
    DeviceFlowError,
    DeviceFlowExpiredError,
    PollOnceResult,
    run_device_flow,
)
from tokendokey.security.auth.direct_grant import DirectGrantError, request_direct_grant_tokens
from tokendokey.security.auth.discovery import DiscoveredEndpoints, DiscoveryError, discover_endpoints
from tokendokey.security.auth.pkce import PKCEPair
from tokendokey.security.auth.token_refresh import (
    TokenRefreshError,
    TokenRefreshExpiredError,
    refresh_tokens,
)
from tokendokey.security.auth.token_storage import TokenPair, TokenStorage
from tokendokey.security.auth.token_validator import (
    TokenValidator,
    UnverifiedExpiryValidator,
    is_token_valid,
    token_expiry,
)

__all__ = [
    "DeviceCodeResponse",
    "DeviceFlow",
    "DeviceFlowCancelledError",
    "DeviceFlowConfigError",
    "DeviceFlowDeniedError",
    "DeviceFlowError",
    "DeviceFlowExpiredError",
    "DirectGrantError",
    "DiscoveredEndpoints",
    "DiscoveryError",
    "PKCEPair",
    "PollOnceResult",
    "TokenPair",
    "TokenRefreshError",
    "TokenRefreshExpiredError",
    "TokenStorage",
    "TokenValidator",
    "UnverifiedExpiryValidator",
    "discover_endpoints",
    "is_token_valid",
    "refresh_tokens",
    "request_direct_grant_tokens",
    "run_device_flow",
    "token_expiry",
]
