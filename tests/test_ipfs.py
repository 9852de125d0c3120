"""
Unit tests for IPFS gateway URL mapping.
"""
import sys
import os

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lndy.services.ipfs import convert_ipfs_to_gateway_url, get_ipfs_gateway_urls

CID = "Qm" + "a" * 44
PINATA = "https://gateway.pinata.cloud/ipfs/"


class TestConvertIpfsToGatewayUrl:
    """Test display URL resolution."""

    def test_empty(self):
        assert convert_ipfs_to_gateway_url("") == ""

    def test_http_passthrough(self):
        assert convert_ipfs_to_gateway_url("https://example.com/a.png") == "https://example.com/a.png"
        assert convert_ipfs_to_gateway_url("http://example.com/a.png") == "http://example.com/a.png"

    def test_ipfs_scheme(self):
        assert convert_ipfs_to_gateway_url(f"ipfs://{CID}/0") == f"{PINATA}{CID}/0"

    def test_bare_cid(self):
        assert convert_ipfs_to_gateway_url(CID) == f"{PINATA}{CID}"

    def test_known_hosts_passthrough(self):
        assert convert_ipfs_to_gateway_url("cdn.thirdweb.com/x") == "cdn.thirdweb.com/x"

    def test_fallback_assumes_hash(self):
        assert convert_ipfs_to_gateway_url("bafyhash") == f"{PINATA}bafyhash"


class TestGetIpfsGatewayUrls:
    """Test fallback URL list."""

    def test_all_gateways_in_order(self):
        urls = get_ipfs_gateway_urls(f"ipfs://{CID}")

        assert urls == [
            f"{PINATA}{CID}",
            f"https://cloudflare-ipfs.com/ipfs/{CID}",
            f"https://ipfs.io/ipfs/{CID}",
            f"https://{CID}.ipfs.dweb.link",
        ]

    def test_strips_primary_gateway(self):
        assert get_ipfs_gateway_urls(f"{PINATA}{CID}")[1] == f"https://cloudflare-ipfs.com/ipfs/{CID}"

    def test_empty(self):
        assert get_ipfs_gateway_urls("") == []
