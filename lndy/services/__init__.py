"""
Boundary services for the LNDY lending front-end.

- sanitize: defensive normalization of contract reads into LoanRecord / InvestmentRecord
- returns: funding, repayment and return arithmetic
- wallet: active wallet selection (embedded wallet wins over browser wallet)
- raw_sender: raw eth_sendTransaction path for the embedded wallet
- executor: TransactionExecutor routing writes to the active wallet
- providers: web3.py-backed provider adapter and standard submitter
- lending_client / loan_service: contract reads, fetch flows, action preparers
- ipfs / notifications: image URL mapping and best-effort notifications
"""

from .base import (
    # Enums
    WalletBackend,
    LoanStatus,
    RepaymentStatus,
    # Exceptions
    TransactionError,
    WalletUnavailableError,
    MissingContractAddressError,
    TransactionSubmissionError,
    ProviderRPCError,
    normalize_error,
    # Dataclasses
    LoanRecord,
    InvestmentRecord,
    WalletIdentity,
    TransactionFieldSet,
    SendResult,
    # Helpers
    from_base_units,
    to_base_units,
    format_address,
    format_usd,
)

from .sanitize import (
    sanitize_string,
    sanitize_optional_string,
    to_int_safe,
    to_number_safe,
    to_boolean_safe,
    sanitize_address,
    normalize_loan_details,
    normalize_investment_details,
)

from .returns import (
    RepaymentHealth,
    funded_percentage,
    remaining_amount,
    total_repayment,
    repaid_percentage,
    repayment_health,
    preset_amount,
    proportional_share,
    has_claimed_all_available,
    total_possible_return,
    return_percentage,
    sort_investments,
)

from .wallet import (
    EmbeddedWalletContext,
    BrowserWalletContext,
    resolve_wallet_identity,
    connect_embedded_wallet,
    is_embedded_preferred,
)

from .raw_sender import send_raw_transaction, to_hex
from .executor import TransactionExecutor
from .providers import Web3Provider, Web3TransactionSubmitter
from .lending_client import LendingClient
from .ipfs import convert_ipfs_to_gateway_url, get_ipfs_gateway_urls
from .notifications import NotificationClient, NotificationData, NotificationType

__all__ = [
    # Enums
    'WalletBackend',
    'LoanStatus',
    'RepaymentStatus',
    # Exceptions
    'TransactionError',
    'WalletUnavailableError',
    'MissingContractAddressError',
    'TransactionSubmissionError',
    'ProviderRPCError',
    'normalize_error',
    # Dataclasses
    'LoanRecord',
    'InvestmentRecord',
    'WalletIdentity',
    'TransactionFieldSet',
    'SendResult',
    'RepaymentHealth',
    'EmbeddedWalletContext',
    'BrowserWalletContext',
    # Normalization
    'sanitize_string',
    'sanitize_optional_string',
    'to_int_safe',
    'to_number_safe',
    'to_boolean_safe',
    'sanitize_address',
    'normalize_loan_details',
    'normalize_investment_details',
    # Returns
    'funded_percentage',
    'remaining_amount',
    'total_repayment',
    'repaid_percentage',
    'repayment_health',
    'preset_amount',
    'proportional_share',
    'has_claimed_all_available',
    'total_possible_return',
    'return_percentage',
    'sort_investments',
    # Wallet
    'resolve_wallet_identity',
    'connect_embedded_wallet',
    'is_embedded_preferred',
    # Transactions
    'send_raw_transaction',
    'to_hex',
    'TransactionExecutor',
    'Web3Provider',
    'Web3TransactionSubmitter',
    'LendingClient',
    # Collaborators
    'convert_ipfs_to_gateway_url',
    'get_ipfs_gateway_urls',
    'NotificationClient',
    'NotificationData',
    'NotificationType',
    # Helpers
    'from_base_units',
    'to_base_units',
    'format_address',
    'format_usd',
]
