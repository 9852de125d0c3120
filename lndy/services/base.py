"""
Base classes and data structures for the lending core.
Provides the normalized loan/investment records, wallet identity, transaction
descriptors and the exception hierarchy shared by every service.
"""

from decimal import Decimal, getcontext, ROUND_FLOOR
from typing import Any, Dict, Optional
from dataclasses import dataclass
from enum import Enum
import logging

from eth_utils import to_checksum_address

from ..config.chain_config import ZERO_ADDRESS, USDC_DECIMALS

# Set decimal precision for financial calculations
getcontext().prec = 28

logger = logging.getLogger(__name__)


# ============================================================================
# ENUMS
# ============================================================================

class WalletBackend(Enum):
    """Wallet backends a transaction can be routed through"""
    EMBEDDED = "embedded"  # Provider supplied by the hosting client
    BROWSER = "browser"    # Injected / standard wallet
    NONE = "none"


class LoanStatus(Enum):
    """Display status of a loan"""
    FUNDING = "funding"
    ACTIVE = "active"
    REPAID = "repaid"


class RepaymentStatus(Enum):
    """Repayment health relative to elapsed loan time"""
    GOOD = "good"
    BEHIND = "behind"
    CONCERNING = "concerning"


# ============================================================================
# EXCEPTIONS
# ============================================================================

class TransactionError(Exception):
    """A transaction could not be routed or submitted."""


class WalletUnavailableError(TransactionError):
    """The selected wallet backend has no usable address or provider."""


class MissingContractAddressError(TransactionError):
    """No target contract address could be resolved for a transaction."""


class TransactionSubmissionError(TransactionError):
    """The underlying submission call rejected."""

    def __init__(self, message: str, cause: Optional[BaseException] = None):
        super().__init__(message)
        self.cause = cause


class ProviderRPCError(TransactionError):
    """A provider answered a JSON-RPC request with an error object."""

    def __init__(self, message: str, code: Optional[int] = None, data: Any = None):
        super().__init__(message)
        self.code = code
        self.data = data

    @property
    def is_user_rejection(self) -> bool:
        # EIP-1193 user rejected request
        return self.code == 4001


def normalize_error(error: BaseException) -> TransactionError:
    """Wrap any failure into a single TransactionError, keeping its message."""
    if isinstance(error, TransactionError):
        return error
    message = str(error).strip() or "Transaction failed"
    wrapped = TransactionSubmissionError(message, cause=error)
    wrapped.__cause__ = error
    return wrapped


# ============================================================================
# DATA CLASSES
# ============================================================================

@dataclass(frozen=True)
class LoanRecord:
    """Normalized snapshot of a loan contract's getLoanDetails() result"""
    address: str
    loan_amount: int  # base units of the settlement token
    interest_rate: int  # thank-you amount in basis points
    duration: int  # seconds between funding deadline and repayment date
    funding_deadline: int
    repayment_date: int
    title: Optional[str]
    description: str
    image_uri: str
    borrower: str
    total_funded: int
    total_repaid_amount: int = 0
    actual_repaid_amount: int = 0
    is_active: bool = False
    is_repaid: bool = False

    @property
    def status(self) -> LoanStatus:
        if self.is_repaid:
            return LoanStatus.REPAID
        if self.is_active:
            return LoanStatus.ACTIVE
        return LoanStatus.FUNDING

    @property
    def has_borrower(self) -> bool:
        return self.borrower != ZERO_ADDRESS

    @property
    def checksum_borrower(self) -> str:
        return to_checksum_address(self.borrower)

    def to_dict(self) -> dict:
        return {
            'address': self.address,
            'loan_amount': str(self.loan_amount),
            'interest_rate': self.interest_rate,
            'duration': self.duration,
            'duration_days': self.duration / 86400,
            'funding_deadline': self.funding_deadline,
            'repayment_date': self.repayment_date,
            'title': self.title,
            'description': self.description,
            'image_uri': self.image_uri,
            'borrower': self.borrower,
            'total_funded': str(self.total_funded),
            'total_repaid_amount': str(self.total_repaid_amount),
            'actual_repaid_amount': str(self.actual_repaid_amount),
            'is_active': self.is_active,
            'is_repaid': self.is_repaid,
            'status': self.status.value,
        }


@dataclass(frozen=True)
class InvestmentRecord:
    """A supporter's claim position (one token) on a loan, in currency units"""
    loan_address: str
    token_id: int
    contribution_amount: Decimal
    claimed_amount: Decimal
    claimable_amount: Decimal
    total_repaid_amount: Decimal
    actual_repaid_amount: Decimal
    loan_amount: Decimal = Decimal(0)
    loan_title: Optional[str] = None
    loan_description: str = ""
    loan_image_uri: str = ""
    borrower: str = ZERO_ADDRESS
    is_loan_active: bool = False
    is_loan_repaid: bool = False

    @property
    def loan_status(self) -> LoanStatus:
        if self.is_loan_repaid:
            return LoanStatus.REPAID
        if self.is_loan_active:
            return LoanStatus.ACTIVE
        return LoanStatus.FUNDING

    def to_dict(self) -> dict:
        return {
            'loan_address': self.loan_address,
            'token_id': self.token_id,
            'contribution_amount': float(self.contribution_amount),
            'claimed_amount': float(self.claimed_amount),
            'claimable_amount': float(self.claimable_amount),
            'total_repaid_amount': float(self.total_repaid_amount),
            'actual_repaid_amount': float(self.actual_repaid_amount),
            'loan_amount': float(self.loan_amount),
            'loan_title': self.loan_title,
            'loan_description': self.loan_description,
            'loan_image_uri': self.loan_image_uri,
            'borrower': self.borrower,
            'is_loan_active': self.is_loan_active,
            'is_loan_repaid': self.is_loan_repaid,
            'loan_status': self.loan_status.value,
        }


@dataclass(frozen=True)
class WalletIdentity:
    """The single active wallet; the provider is only set for the embedded backend"""
    backend: WalletBackend
    address: Optional[str] = None
    provider: Any = None

    @property
    def is_connected(self) -> bool:
        return self.backend is not WalletBackend.NONE


# Fields resolved before submission, in request order
PENDING_FIELDS = (
    'data',
    'value',
    'gas',
    'gas_price',
    'max_fee_per_gas',
    'max_priority_fee_per_gas',
    'max_fee_per_blob_gas',
    'nonce',
    'access_list',
)


@dataclass
class TransactionFieldSet:
    """
    Prepared transaction descriptor.

    Any field in PENDING_FIELDS may hold a concrete value, an awaitable, or a
    zero-argument callable returning either. `contract` is an alternate
    reference (mapping or object with an `address`) used when `to` is absent.
    Built once per user action and consumed once by the executor.
    """
    chain_id: int
    to: Optional[str] = None
    data: Any = None
    value: Any = None
    gas: Any = None
    gas_price: Any = None
    max_fee_per_gas: Any = None
    max_priority_fee_per_gas: Any = None
    max_fee_per_blob_gas: Any = None
    nonce: Any = None
    access_list: Any = None
    contract: Any = None
    from_address: Optional[str] = None
    client: Any = None

    def target_address(self) -> Optional[str]:
        """Primary `to`, else the embedded contract reference's address."""
        if self.to:
            return self.to
        contract = self.contract
        if contract is None:
            return None
        if isinstance(contract, dict):
            address = contract.get('address')
        else:
            address = getattr(contract, 'address', None)
        return address or None


@dataclass(frozen=True)
class SendResult:
    """Receipt-wait descriptor returned once a transaction has been submitted"""
    transaction_hash: str
    chain_id: int
    client: Any = None

    def to_dict(self) -> Dict[str, Any]:
        return {
            'transaction_hash': self.transaction_hash,
            'chain_id': self.chain_id,
        }


# ============================================================================
# HELPER FUNCTIONS
# ============================================================================

def from_base_units(value: int, decimals: int = USDC_DECIMALS) -> Decimal:
    """Convert token base units to currency units"""
    return Decimal(value) / Decimal(10 ** decimals)


def to_base_units(amount, decimals: int = USDC_DECIMALS, rounding: str = ROUND_FLOOR) -> int:
    """Convert a currency amount to token base units (floor by default)"""
    scaled = Decimal(str(amount)) * Decimal(10 ** decimals)
    return int(scaled.to_integral_value(rounding=rounding))


def format_address(address: str, length: int = 6) -> str:
    """Format address for display"""
    if not address:
        return ""
    return f"{address[:length]}...{address[-4:]}"


def format_usd(amount) -> str:
    """Format a currency amount as US dollars"""
    value = Decimal(str(amount)).quantize(Decimal("0.01"))
    sign = "-" if value < 0 else ""
    return f"{sign}${abs(value):,.2f}"
