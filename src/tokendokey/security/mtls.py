"""mTLS (Mutual TLS) utilities for the direct grant flow.

Builds the ssl.SSLContext presenting the client certificate to the token
endpoint, and checks the certificate's expiry before it is used.
"""

from __future__ import annotations

__all__ = [
    "create_mtls_ssl_context",
]

import ssl
from datetime import datetime, timezone
from pathlib import Path

from cryptography import x509

from tokendokey.config import MTLSIdentity
from tokendokey.constants import CERT_EXPIRY_CRITICAL_DAYS, CERT_EXPIRY_WARNING_DAYS
from tokendokey.exceptions import TLSIdentityError
from tokendokey.telemetry.system_logger import get_system_logger


def _no_passphrase() -> bytes:
    return b""


def _resolve(path: str, label: str) -> Path:
    resolved = Path(path).expanduser().resolve()
    if not resolved.is_file():
        raise TLSIdentityError(f"mTLS {label} not found: {resolved}")
    return resolved


# =============================================================================
# SSL Context
# =============================================================================


def create_mtls_ssl_context(identity: MTLSIdentity) -> ssl.SSLContext:
    """Create an SSL context carrying the client certificate.

    With a CA bundle the server certificate is verified against it.
    Without one, server verification is disabled and a warning is logged;
    the connection still authenticates the client.

    Args:
        identity: Client certificate, key and optional CA bundle paths.

    Returns:
        ssl.SSLContext ready for httpx.Client(verify=...).

    Raises:
        TLSIdentityError: If a file is missing, cannot be loaded, the
            cert/key do not match, the key is passphrase-protected, or the
            certificate has expired.
    """
    cert_path = _resolve(identity.client_cert_path, "client certificate")
    key_path = _resolve(identity.client_key_path, "client key")
    ca_path = _resolve(identity.ca_cert_path, "CA certificate") if identity.ca_cert_path else None

    try:
        if ca_path is not None:
            ctx = ssl.create_default_context(cafile=str(ca_path))
        else:
            ctx = ssl.create_default_context()
            ctx.check_hostname = False
            ctx.verify_mode = ssl.CERT_NONE
        # Encrypted keys fail here instead of prompting for a passphrase on the tty
        ctx.load_cert_chain(certfile=str(cert_path), keyfile=str(key_path), password=_no_passphrase)
    except ssl.SSLError as e:
        raise TLSIdentityError(f"Invalid mTLS certificates: {e}") from e

    _check_certificate_expiry(cert_path)

    if ca_path is None:
        get_system_logger().warning(
            {
                "event": "tls_server_verification_disabled",
                "message": "No CA certificate given: the token endpoint's certificate will not be verified",
                "component": "mtls",
                "details": {"cert_path": str(cert_path)},
            }
        )

    return ctx


# =============================================================================
# Certificate Expiry
# =============================================================================


def _load_certificate(cert_path: Path) -> x509.Certificate:
    try:
        return x509.load_pem_x509_certificate(cert_path.read_bytes())
    except (OSError, ValueError) as e:
        raise TLSIdentityError(f"Cannot parse mTLS client certificate {cert_path}: {e}") from e


def _days_until_expiry(cert: x509.Certificate) -> tuple[int, datetime]:
    expires_at = cert.not_valid_after_utc
    return (expires_at - datetime.now(timezone.utc)).days, expires_at


def _check_certificate_expiry(cert_path: Path) -> int:
    """Check if the client certificate is expired or expiring soon.

    Logs CRITICAL within CERT_EXPIRY_CRITICAL_DAYS and WARNING within
    CERT_EXPIRY_WARNING_DAYS.

    Returns:
        Days until expiry.

    Raises:
        TLSIdentityError: If the certificate is already expired.
    """
    cert = _load_certificate(cert_path)
    days_until_expiry, expires_at = _days_until_expiry(cert)
    logger = get_system_logger()

    if expires_at <= datetime.now(timezone.utc):
        raise TLSIdentityError(
            f"mTLS client certificate has expired (on {expires_at.strftime('%Y-%m-%d')}). "
            f"Certificate: {cert_path}"
        )

    if days_until_expiry <= CERT_EXPIRY_CRITICAL_DAYS:
        logger.critical(
            {
                "event": "certificate_expiring_critical",
                "message": f"mTLS client certificate expires in {days_until_expiry} days "
                f"(on {expires_at.strftime('%Y-%m-%d')}). Renew immediately! Certificate: {cert_path}",
                "component": "mtls",
                "details": {"cert_path": str(cert_path), "days_until_expiry": days_until_expiry},
            }
        )
    elif days_until_expiry <= CERT_EXPIRY_WARNING_DAYS:
        logger.warning(
            {
                "event": "certificate_expiring_soon",
                "message": f"mTLS client certificate expires in {days_until_expiry} days "
                f"(on {expires_at.strftime('%Y-%m-%d')}). Consider renewing soon.",
                "component": "mtls",
                "details": {"cert_path": str(cert_path), "days_until_expiry": days_until_expiry},
            }
        )

    return days_until_expiry

