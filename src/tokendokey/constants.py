"""Application-wide constants for tokendokey.

Constants that define application behavior.
For per-client settings, see config.py.
"""

__all__ = [
    # Application identity
    "APP_NAME",
    # Credential directory layout
    "DEFAULT_ROOT_DIRNAME",
    "HOME_ENV_VAR",
    "LOG_DIR_ENV_VAR",
    "CONFIG_FILENAME",
    "ACCESS_TOKEN_FILENAME",
    "REFRESH_TOKEN_FILENAME",
    "CLIENT_FILENAMES",
    "ARCHIVE_FILENAME",
    # Token validity
    "ACCESS_TOKEN_MARGIN_SECONDS",
    "REFRESH_TOKEN_MARGIN_SECONDS",
    # OAuth wire protocol
    "OAUTH_CLIENT_TIMEOUT_SECONDS",
    "DEVICE_CODE_GRANT_TYPE",
    "OFFLINE_ACCESS_SCOPE",
    "PKCE_METHOD",
    "PKCE_VERIFIER_BYTES",
    "DEVICE_FLOW_POLL_INTERVAL_SECONDS",
    "DEVICE_FLOW_SLOW_DOWN_INCREMENT_SECONDS",
    # mTLS certificate monitoring
    "CERT_EXPIRY_WARNING_DAYS",
    "CERT_EXPIRY_CRITICAL_DAYS",
    # Logging
    "AUTH_LOG_FILENAME",
    "SYSTEM_LOG_FILENAME",
    "TOKEN_FINGERPRINT_LENGTH",
]

# ============================================================================
# Application Identity
# ============================================================================

# Application name used for directory names, logger names, etc.
APP_NAME: str = "tokendokey"

# ============================================================================
# Credential Directory Layout
# ============================================================================

# Per-client directories live under ~/.tokendokey/<client_name>/
DEFAULT_ROOT_DIRNAME: str = ".tokendokey"

# Overrides for the credential root and the log directory
HOME_ENV_VAR: str = "TOKENDOKEY_HOME"
LOG_DIR_ENV_VAR: str = "TOKENDOKEY_LOG_DIR"

CONFIG_FILENAME: str = "config.json"
ACCESS_TOKEN_FILENAME: str = "access_token.txt"
REFRESH_TOKEN_FILENAME: str = "refresh_token.txt"

# Files that make up a client profile (the archive carries these by base name)
CLIENT_FILENAMES: tuple[str, ...] = (
    CONFIG_FILENAME,
    ACCESS_TOKEN_FILENAME,
    REFRESH_TOKEN_FILENAME,
)

# Archive used to move a client profile between machines
ARCHIVE_FILENAME: str = "tokendokey.key"

# ============================================================================
# Token Validity
# ============================================================================

# Safety margins subtracted from the JWT exp claim before comparing to now.
# A token inside its margin is treated as already expired so it cannot
# expire mid-flight of the next network call.
ACCESS_TOKEN_MARGIN_SECONDS: int = 30
REFRESH_TOKEN_MARGIN_SECONDS: int = 60

# ============================================================================
# OAuth Wire Protocol
# ============================================================================

# Timeout for OAuth HTTP requests (device code, token polling, refresh, mTLS)
OAUTH_CLIENT_TIMEOUT_SECONDS: int = 30

# RFC 8628 grant type for device code polling
DEVICE_CODE_GRANT_TYPE: str = "urn:ietf:params:oauth:grant-type:device_code"

# Scope requested by `login --offline-token`
OFFLINE_ACCESS_SCOPE: str = "offline_access"

# RFC 7636 PKCE parameters
PKCE_METHOD: str = "S256"
PKCE_VERIFIER_BYTES: int = 43

# Fixed delay between device code polls (seconds)
DEVICE_FLOW_POLL_INTERVAL_SECONDS: int = 5

# Added to the poll interval each time the issuer answers slow_down (RFC 8628 3.5)
DEVICE_FLOW_SLOW_DOWN_INCREMENT_SECONDS: int = 5

# ============================================================================
# mTLS Certificate Monitoring
# ============================================================================

CERT_EXPIRY_WARNING_DAYS: int = 14  # Warning if expires within 14 days
CERT_EXPIRY_CRITICAL_DAYS: int = 7  # Critical warning if expires within 7 days

# ============================================================================
# Logging
# ============================================================================

AUTH_LOG_FILENAME: str = "auth.jsonl"
SYSTEM_LOG_FILENAME: str = "system.jsonl"

# Hex characters of SHA-256 kept when a token is referenced in logs
TOKEN_FINGERPRINT_LENGTH: int = 12
