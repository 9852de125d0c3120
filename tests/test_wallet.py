"""
Unit tests for wallet identity resolution and embedded wallet bootstrap.
"""
import asyncio
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lndy.services.base import WalletBackend
from lndy.services.wallet import (
    BrowserWalletContext,
    EmbeddedWalletContext,
    connect_embedded_wallet,
    is_embedded_preferred,
    resolve_wallet_identity,
)

EMBEDDED_ADDRESS = "0x" + "aa" * 20
BROWSER_ADDRESS = "0x" + "bb" * 20


class FakeProvider:
    """Records requests and answers from a canned response."""

    def __init__(self, response=None, error=None):
        self.response = response
        self.error = error
        self.calls = []

    async def request(self, payload):
        self.calls.append(payload)
        if self.error is not None:
            raise self.error
        return self.response


class TestResolveWalletIdentity:
    """Test active wallet selection."""

    def test_embedded_wins_over_browser(self):
        """Verify a connected embedded wallet is authoritative."""
        provider = FakeProvider()
        embedded = EmbeddedWalletContext(is_connected=True, address=EMBEDDED_ADDRESS, provider=provider)
        browser = BrowserWalletContext(address=BROWSER_ADDRESS)

        identity = resolve_wallet_identity(embedded, browser)

        assert identity.backend == WalletBackend.EMBEDDED
        assert identity.address == EMBEDDED_ADDRESS
        assert identity.provider is provider

    def test_embedded_connected_without_provider_still_selected(self):
        embedded = EmbeddedWalletContext(is_connected=True, address=EMBEDDED_ADDRESS)
        identity = resolve_wallet_identity(embedded, BrowserWalletContext(address=BROWSER_ADDRESS))
        assert identity.backend == WalletBackend.EMBEDDED
        assert identity.provider is None

    def test_browser_when_embedded_disconnected(self):
        identity = resolve_wallet_identity(EmbeddedWalletContext(), BrowserWalletContext(address=BROWSER_ADDRESS))
        assert identity.backend == WalletBackend.BROWSER
        assert identity.address == BROWSER_ADDRESS
        assert identity.provider is None

    def test_none_when_nothing_connected(self):
        identity = resolve_wallet_identity(None, BrowserWalletContext())
        assert identity.backend == WalletBackend.NONE
        assert identity.address is None
        assert not identity.is_connected


class TestConnectEmbeddedWallet:
    """Test building the embedded context from a provider."""

    def test_connects_first_account(self):
        provider = FakeProvider(response=["0x" + "AA" * 20, BROWSER_ADDRESS])
        user = {"fid": "42", "username": " alice ", "displayName": None}

        context = asyncio.run(connect_embedded_wallet(provider, user))

        assert context.is_connected
        assert context.address == EMBEDDED_ADDRESS
        assert context.provider is provider
        assert context.fid == 42
        assert context.username == "alice"
        assert context.display_name == ""
        assert provider.calls == [{"method": "eth_accounts", "params": []}]

    def test_request_accounts_when_user_connects(self):
        provider = FakeProvider(response=[EMBEDDED_ADDRESS])
        asyncio.run(connect_embedded_wallet(provider, request_accounts=True))
        assert provider.calls[0]["method"] == "eth_requestAccounts"

    def test_provider_failure_does_not_raise(self):
        """Verify errors come back on the context rather than as exceptions."""
        provider = FakeProvider(error=RuntimeError("bridge closed"))

        context = asyncio.run(connect_embedded_wallet(provider))

        assert not context.is_connected
        assert context.error == "bridge closed"

    def test_no_accounts_or_bad_account(self):
        assert not asyncio.run(connect_embedded_wallet(FakeProvider(response=[]))).is_connected

        context = asyncio.run(connect_embedded_wallet(FakeProvider(response=["not-an-address"])))
        assert not context.is_connected
        assert context.error

    def test_non_list_account_result(self):
        """Verify a mapping or bare string from the provider is rejected without raising."""
        for response in ({"address": "0x" + "aa" * 20}, "0x" + "aa" * 20):
            context = asyncio.run(connect_embedded_wallet(FakeProvider(response=response)))
            assert not context.is_connected
            assert context.error == "Invalid account returned by provider"

    def test_missing_provider(self):
        context = asyncio.run(connect_embedded_wallet(None))
        assert not context.is_connected
        assert context.error is None


class TestIsEmbeddedPreferred:
    """Test hosting client detection."""

    def test_bridge_present(self):
        assert is_embedded_preferred(has_bridge=True)

    def test_query_hints(self):
        assert is_embedded_preferred(query_params={"utm_source": "Farcaster"})
        assert is_embedded_preferred(query_params={"farcaster": "1"})
        assert not is_embedded_preferred(query_params={"source": "twitter"})

    def test_user_agent_hints(self):
        assert is_embedded_preferred(user_agent="Mozilla/5.0 Warpcast/1.0")
        assert not is_embedded_preferred(user_agent="Mozilla/5.0 Safari")
