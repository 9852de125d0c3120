"""
Chain Configuration Module

Contains chain constants, contract addresses and environment-backed settings
for the LNDY lending contracts on Base.
"""

import os
from decimal import Decimal

from dotenv import load_dotenv

load_dotenv()

# RPC Configuration
DEFAULT_RPC_URL = "https://mainnet.base.org"
RPC_URL = os.getenv('LNDY_RPC_URL', DEFAULT_RPC_URL)

DEFAULT_CHAIN_ID = 8453  # Base mainnet
CHAIN_ID = int(os.getenv('LNDY_CHAIN_ID', str(DEFAULT_CHAIN_ID)))

# Loan launcher (factory) contract, deployment specific
LAUNCHER_ADDRESS = os.getenv('LNDY_LAUNCHER_ADDRESS', '')

# Settlement token
DEFAULT_USDC_ADDRESS = "0x833589fCD6eDb6E08f4c7C32D4f71b54bdA02913"  # USDC on Base
USDC_ADDRESS = os.getenv('LNDY_USDC_ADDRESS', DEFAULT_USDC_ADDRESS)
USDC_DECIMALS = 6

# Notification endpoints (send / subscribe / enabled-users live under this path)
NOTIFICATIONS_URL = os.getenv('LNDY_NOTIFICATIONS_URL', 'http://localhost:3000/api/notifications')

# Special Addresses
ZERO_ADDRESS = "0x0000000000000000000000000000000000000000"

# Loan display defaults
DESCRIPTION_PLACEHOLDER = "No description provided."

# Return arithmetic
BASIS_POINTS = 10000
CLAIM_TOLERANCE = Decimal("0.01")  # currency units
USD_PRECISION = Decimal("0.01")

# Repayment health thresholds (percentage points behind schedule)
HEALTH_BEHIND_POINTS = 20
HEALTH_CONCERNING_POINTS = 40

# Quick-pick percentages offered on funding / repayment forms
PRESET_PERCENTAGES = (25, 50, 75, 100)

# IPFS gateways, primary first
IPFS_GATEWAYS = [
    "https://gateway.pinata.cloud/ipfs/",
    "https://cloudflare-ipfs.com/ipfs/",
    "https://ipfs.io/ipfs/",
]

# Explorer links for display
BLOCK_EXPLORER_URL = "https://basescan.org"

# Query Configuration
REQUEST_TIMEOUT = 30  # seconds
