"""
Wallet Identity Resolution

Selects the single active wallet from the two independent connection
contexts: the embedded wallet supplied by the hosting client, and the
standard browser wallet. The embedded wallet always wins when connected.
"""

from dataclasses import dataclass
from typing import Any, Mapping, Optional
import logging

from .base import WalletBackend, WalletIdentity
from .sanitize import sanitize_address, sanitize_string, to_int_safe

logger = logging.getLogger(__name__)

PREFERRED_QUERY_PARAMS = ("source", "utm_source", "farcaster")
PREFERRED_AGENT_HINTS = ("warpcast", "farcaster", "dwrfc")


@dataclass(frozen=True)
class EmbeddedWalletContext:
    """Connection state of the embedded (hosting-client) wallet"""
    is_connected: bool = False
    address: Optional[str] = None
    provider: Any = None
    fid: int = 0
    username: str = ""
    display_name: str = ""
    pfp_url: str = ""
    error: Optional[str] = None


@dataclass(frozen=True)
class BrowserWalletContext:
    """Connection state of the standard browser wallet"""
    address: Optional[str] = None

    @property
    def is_connected(self) -> bool:
        return bool(self.address)


def resolve_wallet_identity(
    embedded: Optional[EmbeddedWalletContext],
    browser: Optional[BrowserWalletContext],
) -> WalletIdentity:
    """
    Pick the active wallet. Pure selection, no network calls.

    The embedded context is authoritative whenever it reports a connection,
    even if a browser wallet is connected too.
    """
    if embedded is not None and embedded.is_connected:
        return WalletIdentity(
            backend=WalletBackend.EMBEDDED,
            address=embedded.address,
            provider=embedded.provider,
        )

    if browser is not None and browser.is_connected:
        return WalletIdentity(backend=WalletBackend.BROWSER, address=browser.address)

    return WalletIdentity(backend=WalletBackend.NONE)


def _user_field(user: Any, name: str) -> Any:
    if user is None:
        return None
    if isinstance(user, Mapping):
        return user.get(name)
    return getattr(user, name, None)


async def connect_embedded_wallet(
    provider: Any,
    user: Any = None,
    request_accounts: bool = False,
) -> EmbeddedWalletContext:
    """
    Build the embedded wallet context from a provider.

    Uses `eth_accounts` for silent detection and `eth_requestAccounts` when
    the user explicitly connects. Never raises: failures come back as a
    disconnected context with `error` set.
    """
    if provider is None:
        logger.debug("No embedded provider available")
        return EmbeddedWalletContext()

    method = "eth_requestAccounts" if request_accounts else "eth_accounts"
    try:
        accounts = await provider.request({"method": method, "params": []})
    except Exception as e:
        logger.error(f"Failed to connect embedded wallet: {e}")
        return EmbeddedWalletContext(error=str(e) or "Failed to connect wallet")

    if not accounts:
        logger.info("Embedded provider returned no accounts")
        return EmbeddedWalletContext(error="No accounts available" if request_accounts else None)

    if not isinstance(accounts, (list, tuple)):
        logger.warning(f"Embedded provider returned a non-list account result: {type(accounts).__name__}")
        return EmbeddedWalletContext(error="Invalid account returned by provider")

    address = sanitize_address(accounts[0], fallback="")
    if not address:
        logger.warning(f"Embedded provider returned an invalid account: {accounts[0]!r}")
        return EmbeddedWalletContext(error="Invalid account returned by provider")

    context = EmbeddedWalletContext(
        is_connected=True,
        address=address,
        provider=provider,
        fid=to_int_safe(_user_field(user, "fid")),
        username=sanitize_string(_user_field(user, "username")),
        display_name=sanitize_string(_user_field(user, "displayName")),
        pfp_url=sanitize_string(_user_field(user, "pfpUrl")),
    )
    logger.info(f"Embedded wallet connected: {address}")
    return context


def is_embedded_preferred(
    user_agent: str = "",
    query_params: Optional[Mapping[str, str]] = None,
    has_bridge: bool = False,
) -> bool:
    """Whether the session looks like it was opened from a hosting social client."""
    if has_bridge:
        return True

    for param in PREFERRED_QUERY_PARAMS:
        value = (query_params or {}).get(param)
        if value and ("farcaster" in value.lower() or value == "1"):
            return True

    agent = (user_agent or "").lower()
    return any(hint in agent for hint in PREFERRED_AGENT_HINTS)
