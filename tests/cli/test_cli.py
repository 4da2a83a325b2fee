"""Unit tests for CLI commands.

Tests CLI behavior using Click's CliRunner for isolated, fast testing.
Tests use the AAA pattern (Arrange-Act-Assert) for clarity.

HTTP is never performed: flows either hit the token cache or use a
patched httpx.Client.
"""

from __future__ import annotations

import json
from pathlib import Path
from typing import Callable, Iterator
from unittest.mock import MagicMock, patch

import httpx
import pytest
from click.testing import CliRunner

from tokendokey.cli import cli
from tokendokey.config import ClientConfig
from tokendokey.security.auth.token_storage import TokenPair
from tokendokey.security.credential_storage import CredentialStore


@pytest.fixture(autouse=True)
def no_browser() -> Iterator[MagicMock]:
    """Never open a real browser."""
    with patch("tokendokey.cli.commands.auth.webbrowser.open", return_value=False) as open_mock:
        yield open_mock


@pytest.fixture
def runner() -> CliRunner:
    """Create a CLI runner for testing."""
    return CliRunner()


@pytest.fixture
def init_acme(runner: CliRunner) -> Callable[..., None]:
    """Initialize client 'acme' non-interactively."""

    def _init(*extra: str) -> None:
        result = runner.invoke(
            cli,
            [
                "init",
                "-c",
                "acme",
                "--non-interactive",
                "--client-id",
                "abc",
                "--token-url",
                "https://issuer/token",
                *extra,
            ],
        )
        assert result.exit_code == 0, result.output

    return _init


class TestVersion:
    """Tests for --version flag."""

    def test_version_flag_shows_version(self, runner: CliRunner) -> None:
        """Given --version flag, returns version string."""
        # Act
        result = runner.invoke(cli, ["--version"])

        # Assert
        assert result.exit_code == 0
        assert "tokendokey 0.3.0" in result.output

    def test_short_version_flag(self, runner: CliRunner) -> None:
        """Given -v flag, returns version string."""
        # Act
        result = runner.invoke(cli, ["-v"])

        # Assert
        assert result.exit_code == 0
        assert "tokendokey" in result.output


class TestHelp:
    """Tests for help output."""

    def test_root_help_lists_commands_in_workflow_order(self, runner: CliRunner) -> None:
        """Given --help, commands appear in registration order."""
        # Act
        result = runner.invoke(cli, ["--help"])

        # Assert
        assert result.exit_code == 0
        positions = [result.output.index(f"  {name} ") for name in ("init", "get-token", "login", "mtls-token")]
        assert positions == sorted(positions)
        assert "Quick Start" in result.output

    def test_no_command_shows_help(self, runner: CliRunner) -> None:
        """Given no subcommand, help is printed."""
        # Act
        result = runner.invoke(cli, [])

        # Assert
        assert result.exit_code == 0
        assert "Usage:" in result.output

    def test_subcommand_short_help_flag(self, runner: CliRunner) -> None:
        """Given -h on a subcommand, its help is shown."""
        # Act
        result = runner.invoke(cli, ["mtls-token", "-h"])

        # Assert
        assert result.exit_code == 0
        assert "--caCert" in result.output


class TestInit:
    """Tests for the init command."""

    def test_non_interactive_init_creates_profile(
        self, runner: CliRunner, store: CredentialStore, init_acme: Callable[..., None]
    ) -> None:
        """Given all flags, the profile is written with empty tokens."""
        # Act
        init_acme("--client-secret", "s3cret-value", "--device-url", "https://issuer/device")

        # Assert
        config = store.load_config("acme")
        assert config.client_id == "abc"
        assert config.client_secret == "s3cret-value"
        assert config.device_code_url == "https://issuer/device"
        assert store.load_tokens("acme").is_empty

    def test_non_interactive_requires_token_url(self, runner: CliRunner) -> None:
        """Given no token URL and no discovery, init fails."""
        # Act
        result = runner.invoke(cli, ["init", "-c", "acme", "--non-interactive", "--client-id", "abc"])

        # Assert
        assert result.exit_code == 1
        assert "--token-url is required" in result.stderr

    def test_malformed_token_url_exits_with_config_error(self, runner: CliRunner, store: CredentialStore) -> None:
        """Given a token URL that cannot be parsed, init exits with code 2 and saves nothing."""
        # Act
        result = runner.invoke(
            cli,
            ["init", "-c", "acme", "--non-interactive", "--client-id", "abc", "--token-url", "https://[::1/token"],
        )

        # Assert
        assert result.exit_code == 2
        assert "token_issue_url" in result.stderr
        assert not store.exists("acme")

    def test_existing_client_requires_force(self, runner: CliRunner, init_acme: Callable[..., None]) -> None:
        """Given an existing client, non-interactive init without --force fails."""
        # Arrange
        init_acme()

        # Act
        result = runner.invoke(
            cli, ["init", "-c", "acme", "--non-interactive", "--client-id", "x", "--token-url", "https://t"]
        )

        # Assert
        assert result.exit_code == 1
        assert "already exists" in result.stderr

    def test_force_overwrites_and_clears_tokens(
        self, runner: CliRunner, store: CredentialStore, init_acme: Callable[..., None]
    ) -> None:
        """Given --force, the config is replaced and tokens are cleared."""
        # Arrange
        init_acme()
        store.save_tokens("acme", TokenPair(access_token="A1", refresh_token="R1"))

        # Act
        init_acme("--force")

        # Assert
        assert store.load_tokens("acme").is_empty

    def test_discovery_fills_endpoints(self, runner: CliRunner, store: CredentialStore) -> None:
        """Given a discovery URL, both endpoints come from the provider document."""
        # Arrange
        document = {"token_endpoint": "https://issuer/token", "device_authorization_endpoint": "https://issuer/device"}

        # Act
        with patch("tokendokey.security.auth.discovery.httpx.Client") as client_cls:
            client_cls.return_value.get.return_value = httpx.Response(200, json=document)
            result = runner.invoke(
                cli,
                [
                    "init",
                    "-c",
                    "acme",
                    "--non-interactive",
                    "--client-id",
                    "abc",
                    "--discovery-url",
                    "https://issuer/.well-known/openid-configuration",
                ],
            )

        # Assert
        assert result.exit_code == 0, result.output
        config = store.load_config("acme")
        assert config.token_issue_url == "https://issuer/token"
        assert config.device_code_url == "https://issuer/device"

    def test_interactive_prompts_for_values(self, runner: CliRunner, store: CredentialStore) -> None:
        """Given no flags, values are read from prompts."""
        # Act
        result = runner.invoke(
            cli,
            ["init", "-c", "acme"],
            input="abc\n\n\nhttps://issuer/token\nhttps://issuer/device\n",
        )

        # Assert
        assert result.exit_code == 0, result.output
        config = store.load_config("acme")
        assert config.client_id == "abc"
        assert config.is_public_client
        assert config.token_issue_url == "https://issuer/token"
        assert config.device_code_url == "https://issuer/device"


class TestGetToken:
    """Tests for get-token."""

    def test_cached_token_printed_without_network(
        self,
        runner: CliRunner,
        store: CredentialStore,
        init_acme: Callable[..., None],
        make_jwt: Callable[..., str],
    ) -> None:
        """Given an unexpired cached access token, stdout is exactly the token."""
        # Arrange
        init_acme()
        token = make_jwt(expires_in=3600)
        store.save_tokens("acme", TokenPair(access_token=token))

        # Act
        with patch("tokendokey.security.auth.token_refresh.httpx.Client") as client_cls:
            result = runner.invoke(cli, ["get-token", "-c", "acme"])

        # Assert
        assert result.exit_code == 0, result.output
        assert result.stdout == token + "\n"
        client_cls.assert_not_called()

    def test_expired_token_is_refreshed(
        self,
        runner: CliRunner,
        store: CredentialStore,
        init_acme: Callable[..., None],
        make_jwt: Callable[..., str],
    ) -> None:
        """Given an expired access token and a valid refresh token, the new token is printed."""
        # Arrange
        init_acme()
        store.save_tokens(
            "acme", TokenPair(access_token=make_jwt(expires_in=-60), refresh_token=make_jwt(expires_in=7200))
        )

        # Act
        with patch("tokendokey.security.auth.token_refresh.httpx.Client") as client_cls:
            client_cls.return_value.post.return_value = httpx.Response(
                200, json={"access_token": "A2", "refresh_token": "R2"}
            )
            result = runner.invoke(cli, ["get-token", "-c", "acme"])

        # Assert
        assert result.exit_code == 0, result.output
        assert result.stdout == "A2\n"
        assert store.load_tokens("acme") == TokenPair(access_token="A2", refresh_token="R2")

    def test_no_tokens_exits_with_login_hint(self, runner: CliRunner, init_acme: Callable[..., None]) -> None:
        """Given a fresh client, get-token fails with exit code 4 and nothing on stdout."""
        # Arrange
        init_acme()

        # Act
        result = runner.invoke(cli, ["get-token", "-c", "acme"])

        # Assert
        assert result.exit_code == 4
        assert result.stdout == ""
        assert "tokendokey login -c acme" in result.stderr

    def test_unknown_client_exits_with_config_error(self, runner: CliRunner) -> None:
        """Given an uninitialized client, get-token exits with code 2."""
        # Act
        result = runner.invoke(cli, ["get-token", "-c", "ghost"])

        # Assert
        assert result.exit_code == 2
        assert "not initialized" in result.stderr

    def test_invalid_client_name_exits(self, runner: CliRunner) -> None:
        """Given a client name with a path separator, get-token exits with code 1."""
        # Act
        result = runner.invoke(cli, ["get-token", "-c", "../etc"])

        # Assert
        assert result.exit_code == 1
        assert "Invalid client name" in result.stderr

    def test_hand_edited_bad_url_exits_with_config_error(
        self, runner: CliRunner, store: CredentialStore, init_acme: Callable[..., None]
    ) -> None:
        """Given a config.json edited to an unparseable token URL, get-token exits with code 2."""
        # Arrange
        init_acme()
        config_path = store.config_path("acme")
        data = json.loads(config_path.read_text())
        data["token_issue_url"] = "https://[::1/token"
        config_path.write_text(json.dumps(data))

        # Act
        result = runner.invoke(cli, ["get-token", "-c", "acme"])

        # Assert
        assert result.exit_code == 2
        assert isinstance(result.exception, SystemExit)
        assert "token_issue_url" in result.stderr

    def test_home_option_overrides_root(
        self, runner: CliRunner, tmp_path: Path, make_jwt: Callable[..., str]
    ) -> None:
        """Given --home, the client is read from that root."""
        # Arrange
        other = CredentialStore(tmp_path / "elsewhere")
        other.initialize("acme", ClientConfig(client_id="abc", token_issue_url="https://issuer/token"))
        token = make_jwt(expires_in=3600)
        other.save_tokens("acme", TokenPair(access_token=token))

        # Act
        result = runner.invoke(cli, ["--home", str(tmp_path / "elsewhere"), "get-token", "-c", "acme"])

        # Assert
        assert result.exit_code == 0, result.output
        assert result.stdout.strip() == token


class TestLogin:
    """Tests for login."""

    def test_login_stores_tokens(
        self, runner: CliRunner, store: CredentialStore, init_acme: Callable[..., None]
    ) -> None:
        """Given an issuer that authorizes immediately, tokens are stored after Enter."""
        # Arrange
        init_acme("--device-url", "https://issuer/device")
        responses = [
            httpx.Response(
                200,
                json={
                    "device_code": "dc",
                    "user_code": "ABCD-EFGH",
                    "verification_uri": "https://issuer/activate",
                },
            ),
            httpx.Response(200, json={"access_token": "A1", "refresh_token": "R1"}),
        ]

        # Act
        with patch("tokendokey.security.auth.device_flow.httpx.Client") as client_cls:
            client_cls.return_value.post.side_effect = responses
            result = runner.invoke(cli, ["login", "-c", "acme", "--no-browser"], input="\n")

        # Assert
        assert result.exit_code == 0, result.output
        assert "https://issuer/activate" in result.output
        assert "ABCD-EFGH" in result.output
        assert "Logged in to 'acme'" in result.output
        assert store.load_tokens("acme") == TokenPair(access_token="A1", refresh_token="R1")

    def test_login_without_device_endpoint_fails(self, runner: CliRunner, init_acme: Callable[..., None]) -> None:
        """Given a client without device endpoint, login exits with a configuration error."""
        # Arrange
        init_acme()

        # Act
        with patch("tokendokey.security.auth.device_flow.httpx.Client"):
            result = runner.invoke(cli, ["login", "-c", "acme", "--no-browser"])

        # Assert
        assert result.exit_code == 2
        assert "--device-url" in result.stderr


class TestLogoutAndStatus:
    """Tests for logout and status."""

    def test_logout_clears_tokens(
        self, runner: CliRunner, store: CredentialStore, init_acme: Callable[..., None]
    ) -> None:
        """Given a logged-in client, logout empties the token files."""
        # Arrange
        init_acme()
        store.save_tokens("acme", TokenPair(access_token="A1", refresh_token="R1"))

        # Act
        result = runner.invoke(cli, ["logout", "-c", "acme"])

        # Assert
        assert result.exit_code == 0
        assert "Logged out of 'acme'" in result.output
        assert store.load_tokens("acme").is_empty

    def test_status_json(
        self,
        runner: CliRunner,
        store: CredentialStore,
        init_acme: Callable[..., None],
        make_jwt: Callable[..., str],
    ) -> None:
        """Given a valid access token, status --json reports logged in."""
        # Arrange
        init_acme()
        store.save_tokens("acme", TokenPair(access_token=make_jwt(expires_in=3600)))

        # Act
        result = runner.invoke(cli, ["status", "-c", "acme", "--json"])

        # Assert
        assert result.exit_code == 0
        data = json.loads(result.stdout)
        assert data["logged_in"] is True
        assert data["access_token"]["valid"] is True
        assert data["refresh_token"]["present"] is False

    def test_status_text_for_fresh_client(self, runner: CliRunner, init_acme: Callable[..., None]) -> None:
        """Given no tokens, status says not logged in."""
        # Arrange
        init_acme()

        # Act
        result = runner.invoke(cli, ["status", "-c", "acme"])

        # Assert
        assert result.exit_code == 0
        assert "Not logged in" in result.output


class TestMtlsToken:
    """Tests for mtls-token."""

    def test_missing_ca_warns_and_bad_cert_fails(
        self, runner: CliRunner, init_acme: Callable[..., None], tmp_path: Path
    ) -> None:
        """Given no --caCert and missing cert files, a warning is shown and exit code is 7."""
        # Arrange
        init_acme()

        # Act
        result = runner.invoke(
            cli,
            ["mtls-token", "-c", "acme", "-t", str(tmp_path / "c.pem"), "-k", str(tmp_path / "c.key")],
        )

        # Assert
        assert result.exit_code == 7
        assert "No --caCert given" in result.stderr
        assert "client certificate not found" in result.stderr
        assert result.stdout == ""

    def test_empty_cert_path_exits_with_tls_error(self, runner: CliRunner, init_acme: Callable[..., None]) -> None:
        """Given an empty --cert value, mtls-token exits with code 7."""
        # Arrange
        init_acme()

        # Act
        result = runner.invoke(cli, ["mtls-token", "-c", "acme", "-t", "", "-k", "c.key", "-r", "ca.pem"])

        # Assert
        assert result.exit_code == 7
        assert "Invalid mTLS options" in result.stderr

    def test_cached_token_needs_no_certificate(
        self,
        runner: CliRunner,
        store: CredentialStore,
        init_acme: Callable[..., None],
        make_jwt: Callable[..., str],
    ) -> None:
        """Given a valid cached token, it is printed without loading the certificate."""
        # Arrange
        init_acme()
        token = make_jwt(expires_in=3600)
        store.save_tokens("acme", TokenPair(access_token=token))

        # Act
        result = runner.invoke(cli, ["mtls-token", "-c", "acme", "-t", "c.pem", "-k", "c.key", "-r", "ca.pem"])

        # Assert
        assert result.exit_code == 0, result.output
        assert result.stdout == token + "\n"


class TestClients:
    """Tests for list and delete."""

    def test_list_shows_client_names(self, runner: CliRunner, init_acme: Callable[..., None]) -> None:
        """Given one client, list prints its name."""
        # Arrange
        init_acme()

        # Act
        result = runner.invoke(cli, ["list"])

        # Assert
        assert result.exit_code == 0
        assert "acme" in result.output.splitlines()

    def test_list_empty(self, runner: CliRunner) -> None:
        """Given no clients, list says so."""
        # Act
        result = runner.invoke(cli, ["list"])

        # Assert
        assert result.exit_code == 0
        assert "No clients configured" in result.output

    def test_list_client_masks_secret(self, runner: CliRunner, init_acme: Callable[..., None]) -> None:
        """Given a confidential client, its secret is masked in the listing."""
        # Arrange
        init_acme("--client-secret", "s3cret-value")

        # Act
        result = runner.invoke(cli, ["list", "-c", "acme"])

        # Assert
        assert result.exit_code == 0
        assert "s3cret-value" not in result.output
        assert "s**********e" in result.output
        assert "device_authorization_endpoint" in result.output

    def test_delete_with_yes(self, runner: CliRunner, store: CredentialStore, init_acme: Callable[..., None]) -> None:
        """Given --yes, the client is removed without prompting."""
        # Arrange
        init_acme()

        # Act
        result = runner.invoke(cli, ["delete", "-c", "acme", "--yes"])

        # Assert
        assert result.exit_code == 0
        assert not store.exists("acme")

    def test_delete_declined_keeps_client(
        self, runner: CliRunner, store: CredentialStore, init_acme: Callable[..., None]
    ) -> None:
        """Given a declined confirmation, the client stays."""
        # Arrange
        init_acme()

        # Act
        result = runner.invoke(cli, ["delete", "-c", "acme"], input="n\n")

        # Assert
        assert result.exit_code == 1
        assert store.exists("acme")


class TestTransfer:
    """Tests for export and import."""

    def test_export_then_import_under_new_name(
        self, runner: CliRunner, store: CredentialStore, init_acme: Callable[..., None], tmp_path: Path
    ) -> None:
        """Given an exported client, importing recreates it under another name."""
        # Arrange
        init_acme()
        store.save_tokens("acme", TokenPair(access_token="A1", refresh_token="R1"))

        # Act
        exported = runner.invoke(cli, ["export", "-c", "acme", "-o", str(tmp_path)])
        imported = runner.invoke(cli, ["import", "-c", "acme2", "-i", str(tmp_path / "tokendokey.key")])

        # Assert
        assert exported.exit_code == 0, exported.output
        assert "keep it private" in exported.stderr
        assert imported.exit_code == 0, imported.output
        assert "config.json" in imported.stdout
        assert store.load_tokens("acme2") == TokenPair(access_token="A1", refresh_token="R1")

    def test_import_missing_archive_fails(self, runner: CliRunner, tmp_path: Path) -> None:
        """Given no archive, import exits with the transfer error code."""
        # Act
        result = runner.invoke(cli, ["import", "-c", "acme", "-i", str(tmp_path / "missing.key")])

        # Assert
        assert result.exit_code == 8
        assert "Archive not found" in result.stderr
