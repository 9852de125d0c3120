"""
LNDY lending core.

Boundary layer between the lending front-end and the chain: defensive
normalization of contract results, dual-backend transaction execution and the
funding/return arithmetic built on the normalized records.
"""

__version__ = "0.1.0"
