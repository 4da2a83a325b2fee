"""tokendokey: local OAuth/OIDC client credential manager.

Acquires, validates and refreshes access tokens for named client profiles
using the Device Authorization (PKCE), Refresh Token and mTLS Direct Grant
flows. Tokens live in a per-client directory under ~/.tokendokey.
"""

__version__ = "0.3.0"
