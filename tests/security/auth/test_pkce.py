"""Tests for PKCE verifier/challenge generation.

Tests cover:
- RFC 7636 Appendix B golden vector
- Verifier length, alphabet and uniqueness
- PKCEPair construction
"""

from __future__ import annotations

import base64
import hashlib
import re

from tokendokey.security.auth.pkce import PKCEPair, generate_code_challenge, generate_code_verifier

BASE64URL_UNPADDED = re.compile(r"^[A-Za-z0-9_-]+$")


class TestCodeChallenge:
    """Tests for the S256 challenge."""

    def test_rfc7636_golden_vector(self) -> None:
        """Given the RFC 7636 example verifier, the challenge matches the RFC."""
        # Act
        challenge = generate_code_challenge("dBjftJeZ4CVP-mB92K27uhbUJU1p1r_wW1gFWFOEjXk")

        # Assert
        assert challenge == "E9Melhoa2OwvFrEMTJguCHaoeK1t8URWbuGJSstw-cM"

    def test_challenge_is_unpadded_sha256(self) -> None:
        """Given any verifier, the challenge is its unpadded base64url SHA-256."""
        # Arrange
        verifier = generate_code_verifier()
        expected = base64.urlsafe_b64encode(hashlib.sha256(verifier.encode("ascii")).digest()).rstrip(b"=")

        # Act & Assert
        assert generate_code_challenge(verifier) == expected.decode("ascii")


class TestCodeVerifier:
    """Tests for verifier generation."""

    def test_verifier_encodes_43_random_bytes(self) -> None:
        """Given a new verifier, it decodes back to 43 bytes (58 characters)."""
        # Act
        verifier = generate_code_verifier()

        # Assert
        assert len(verifier) == 58
        assert len(base64.urlsafe_b64decode(verifier + "==")) == 43

    def test_verifier_uses_unpadded_base64url_alphabet(self) -> None:
        """Given many verifiers, none contain padding or non-URL-safe characters."""
        # Act & Assert
        for _ in range(200):
            assert BASE64URL_UNPADDED.match(generate_code_verifier())

    def test_verifiers_are_unique(self) -> None:
        """Given 10,000 verifiers, no two are equal."""
        # Act
        verifiers = {generate_code_verifier() for _ in range(10_000)}

        # Assert
        assert len(verifiers) == 10_000


class TestPKCEPair:
    """Tests for the per-login pair."""

    def test_generate_pairs_challenge_with_verifier(self) -> None:
        """Given a generated pair, its challenge derives from its verifier."""
        # Act
        pair = PKCEPair.generate()

        # Assert
        assert pair.method == "S256"
        assert pair.challenge == generate_code_challenge(pair.verifier)

    def test_repr_hides_verifier(self) -> None:
        """Given a pair, repr() does not reveal the verifier."""
        # Act
        pair = PKCEPair.generate()

        # Assert
        assert pair.verifier not in repr(pair)
