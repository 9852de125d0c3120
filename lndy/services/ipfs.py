"""
IPFS URI -> HTTP gateway URL mapping for loan images. No retrieval.
"""

import re
from typing import List

from ..config.chain_config import IPFS_GATEWAYS

IPFS_SCHEME = "ipfs://"
CID_V0_PATTERN = re.compile(r"^Qm[1-9A-Za-z]{44}$")

# Hosts whose URLs are already resolvable as-is
PASSTHROUGH_HINTS = ("ipfs.io", "thirdweb")


def convert_ipfs_to_gateway_url(uri: str) -> str:
    """Publicly accessible URL for an image URI; empty input gives ''."""
    if not uri:
        return ""

    if uri.startswith(("http://", "https://")):
        return uri

    primary = IPFS_GATEWAYS[0]
    if uri.startswith(IPFS_SCHEME):
        return f"{primary}{uri[len(IPFS_SCHEME):]}"

    if CID_V0_PATTERN.match(uri):
        return f"{primary}{uri}"

    if any(hint in uri for hint in PASSTHROUGH_HINTS):
        return uri

    # Anything else is assumed to be a bare content hash
    return f"{primary}{uri}"


def get_ipfs_gateway_urls(uri: str) -> List[str]:
    """Candidate URLs across every gateway, primary first, for fallback loading."""
    if not uri:
        return []

    content_hash = uri.replace(IPFS_SCHEME, "").replace(IPFS_GATEWAYS[0], "")
    urls = [f"{gateway}{content_hash}" for gateway in IPFS_GATEWAYS]
    urls.append(f"https://{content_hash}.ipfs.dweb.link")
    return urls
