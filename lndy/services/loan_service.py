"""
Loan Service

Fetch flows that turn raw contract reads into normalized records, and
preparers that encode the user actions (create, approve, fund, repay, claim)
into transaction descriptors for the executor.

Every function takes the contract client as its first argument; any object
exposing `read_contract` / `prepare_contract_call` like LendingClient works.
"""

import asyncio
from decimal import Decimal, ROUND_CEILING, ROUND_FLOOR
from typing import Any, List, Optional
import time
import logging

from ..config.abis import ERC20_ABI, LAUNCHER_ABI, LOAN_ABI
from ..config.chain_config import USDC_ADDRESS, USDC_DECIMALS, ZERO_ADDRESS
from .base import (
    InvestmentRecord,
    LoanRecord,
    TransactionFieldSet,
    from_base_units,
    to_base_units,
)
from .returns import sort_investments
from .sanitize import (
    normalize_investment_details,
    normalize_loan_details,
    sanitize_address,
    to_int_safe,
)

logger = logging.getLogger(__name__)

# Funding window granted to every new loan
DEFAULT_FUNDING_PERIOD = 7 * 24 * 60 * 60  # 1 week in seconds


def _launcher(client: Any, launcher_address: Optional[str]) -> str:
    address = launcher_address or getattr(client, 'launcher_address', None)
    if not address:
        raise ValueError("Loan launcher address is not configured (set LNDY_LAUNCHER_ADDRESS)")
    return address


# ============================================================================
# LOANS
# ============================================================================

async def fetch_loan(client: Any, loan_address: str) -> LoanRecord:
    """Read and normalize one loan contract."""
    raw = await client.read_contract(loan_address, LOAN_ABI, "getLoanDetails")
    return normalize_loan_details(raw, loan_address)


async def fetch_loans(client: Any, loan_addresses: List[str]) -> List[LoanRecord]:
    """
    Fetch several loans concurrently.

    A loan whose read fails is logged and left out; the rest are returned in
    input order.
    """
    results = await asyncio.gather(
        *(fetch_loan(client, address) for address in loan_addresses),
        return_exceptions=True,
    )

    loans = []
    for address, result in zip(loan_addresses, results):
        if isinstance(result, Exception):
            logger.error(f"Failed to fetch loan {address}: {result}")
            continue
        loans.append(result)
    return loans


async def fetch_all_loans(client: Any, launcher_address: Optional[str] = None) -> List[LoanRecord]:
    """Every loan deployed by the launcher."""
    launcher = _launcher(client, launcher_address)
    addresses = await client.read_contract(launcher, LAUNCHER_ABI, "getAllLoans")
    addresses = list(addresses or [])
    logger.info(f"Launcher reports {len(addresses)} loans")
    return await fetch_loans(client, addresses)


async def fetch_borrower_loans(
    client: Any,
    borrower: str,
    launcher_address: Optional[str] = None,
) -> List[LoanRecord]:
    """Loans created by one borrower."""
    launcher = _launcher(client, launcher_address)
    addresses = await client.read_contract(launcher, LAUNCHER_ABI, "getBorrowerLoans", borrower)
    addresses = list(addresses or [])
    logger.info(f"Borrower {borrower[:10]}... has {len(addresses)} loans")
    return await fetch_loans(client, addresses)


async def fetch_loan_contributors(client: Any, loan_address: str) -> List[str]:
    """
    Unique supporter addresses of a loan, in token order.

    Token ids run from 1 to nextTokenId - 1. Tokens whose supporter cannot
    be read are skipped.
    """
    next_token_id = to_int_safe(await client.read_contract(loan_address, LOAN_ABI, "nextTokenId"))
    token_ids = list(range(1, next_token_id))
    if not token_ids:
        return []

    results = await asyncio.gather(
        *(client.read_contract(loan_address, LOAN_ABI, "tokenSupporter", token_id)
          for token_id in token_ids),
        return_exceptions=True,
    )

    contributors = []
    for token_id, result in zip(token_ids, results):
        if isinstance(result, Exception):
            logger.warning(f"Failed to read supporter of token {token_id} on {loan_address}: {result}")
            continue
        supporter = sanitize_address(result)
        if supporter != ZERO_ADDRESS and supporter not in contributors:
            contributors.append(supporter)
    return contributors


# ============================================================================
# INVESTMENTS
# ============================================================================

async def _fetch_token_investment(
    client: Any,
    loan_address: str,
    raw_loan: Any,
    supporter: str,
    token_id: int,
    decimals: int,
) -> Optional[InvestmentRecord]:
    balance = to_int_safe(
        await client.read_contract(loan_address, LOAN_ABI, "balanceOf", supporter, token_id)
    )
    if balance <= 0:
        # Token transferred away or burned
        return None

    token_value, claimed_amount = await asyncio.gather(
        client.read_contract(loan_address, LOAN_ABI, "tokenValues", token_id),
        client.read_contract(loan_address, LOAN_ABI, "tokenClaimedAmounts", token_id),
    )
    return normalize_investment_details(
        raw_loan, loan_address, token_id, token_value, claimed_amount, decimals
    )


async def fetch_loan_investments(
    client: Any,
    loan_address: str,
    supporter: str,
    decimals: int = USDC_DECIMALS,
) -> List[InvestmentRecord]:
    """Positions a supporter still holds on one loan."""
    raw_loan, token_ids = await asyncio.gather(
        client.read_contract(loan_address, LOAN_ABI, "getLoanDetails"),
        client.read_contract(loan_address, LOAN_ABI, "getSupporterTokens", supporter),
    )

    token_ids = [to_int_safe(token_id) for token_id in (token_ids or [])]
    results = await asyncio.gather(
        *(_fetch_token_investment(client, loan_address, raw_loan, supporter, token_id, decimals)
          for token_id in token_ids),
        return_exceptions=True,
    )

    investments = []
    for token_id, result in zip(token_ids, results):
        if isinstance(result, Exception):
            logger.warning(f"Failed to read token {token_id} on {loan_address}: {result}")
            continue
        if result is not None:
            investments.append(result)
    return investments


async def fetch_investments(
    client: Any,
    supporter: str,
    launcher_address: Optional[str] = None,
    decimals: int = USDC_DECIMALS,
) -> List[InvestmentRecord]:
    """
    All positions a supporter holds across every loan.

    Only tokens with a positive balance count. Loans that fail to load are
    skipped. Claimable positions come first, then larger contributions.
    """
    launcher = _launcher(client, launcher_address)
    loan_addresses = list(await client.read_contract(launcher, LAUNCHER_ABI, "getAllLoans") or [])

    results = await asyncio.gather(
        *(fetch_loan_investments(client, address, supporter, decimals) for address in loan_addresses),
        return_exceptions=True,
    )

    investments = []
    for address, result in zip(loan_addresses, results):
        if isinstance(result, Exception):
            logger.error(f"Failed to fetch investments on loan {address}: {result}")
            continue
        investments.extend(result)

    logger.info(f"Found {len(investments)} positions for {supporter[:10]}...")
    return sort_investments(investments)


async def fetch_token_balance(
    client: Any,
    account: str,
    token_address: str = USDC_ADDRESS,
    decimals: int = USDC_DECIMALS,
) -> Decimal:
    """ERC-20 balance in currency units; 0 when the read returns garbage."""
    raw = await client.read_contract(token_address, ERC20_ABI, "balanceOf", account)
    return from_base_units(max(0, to_int_safe(raw)), decimals)


# ============================================================================
# ACTION PREPARERS
# ============================================================================

def prepare_create_loan(
    client: Any,
    loan_amount,
    thank_you_bps: int,
    duration: int,
    title: str,
    description: str,
    image_uri: str,
    funding_period: int = DEFAULT_FUNDING_PERIOD,
    now: Optional[int] = None,
    from_address: Optional[str] = None,
    launcher_address: Optional[str] = None,
    decimals: int = USDC_DECIMALS,
) -> TransactionFieldSet:
    """
    Encode createLoan on the launcher.

    The target repayment date is `now + duration`; the thank-you amount is
    in basis points of the loan amount.
    """
    launcher = _launcher(client, launcher_address)
    if int(duration) <= 0:
        raise ValueError("Loan duration must be positive")

    amount = to_base_units(loan_amount, decimals, rounding=ROUND_FLOOR)
    if amount <= 0:
        raise ValueError("Loan amount must be positive")

    now = int(time.time()) if now is None else now
    target_repayment_date = now + int(duration)

    logger.info(f"Preparing createLoan: {amount} base units, {thank_you_bps} bps, "
                f"repay by {target_repayment_date}")
    return client.prepare_contract_call(
        launcher, LAUNCHER_ABI, "createLoan",
        amount, int(thank_you_bps), target_repayment_date, int(funding_period),
        title, description, image_uri,
        from_address=from_address,
    )


def prepare_approve(
    client: Any,
    spender: str,
    amount,
    token_address: str = USDC_ADDRESS,
    from_address: Optional[str] = None,
    decimals: int = USDC_DECIMALS,
) -> TransactionFieldSet:
    """
    Encode an ERC-20 approve for `spender`.

    The allowance is rounded up to the next whole currency unit so the
    follow-up transfer of `amount` always fits.
    """
    whole_units = Decimal(str(amount)).to_integral_value(rounding=ROUND_CEILING)
    allowance = to_base_units(whole_units, decimals)
    return client.prepare_contract_call(
        token_address, ERC20_ABI, "approve", spender, allowance,
        from_address=from_address,
    )


def prepare_support_loan(
    client: Any,
    loan_address: str,
    amount,
    from_address: Optional[str] = None,
    decimals: int = USDC_DECIMALS,
) -> TransactionFieldSet:
    """Encode supportLoan; the amount is floored to base units."""
    base_amount = to_base_units(amount, decimals, rounding=ROUND_FLOOR)
    if base_amount <= 0:
        raise ValueError("Contribution amount must be positive")
    return client.prepare_contract_call(
        loan_address, LOAN_ABI, "supportLoan", base_amount,
        from_address=from_address,
    )


def prepare_repayment(
    client: Any,
    loan_address: str,
    amount,
    from_address: Optional[str] = None,
    decimals: int = USDC_DECIMALS,
) -> TransactionFieldSet:
    """Encode makeRepayment; the amount is floored to base units."""
    base_amount = to_base_units(amount, decimals, rounding=ROUND_FLOOR)
    if base_amount <= 0:
        raise ValueError("Repayment amount must be positive")
    return client.prepare_contract_call(
        loan_address, LOAN_ABI, "makeRepayment", base_amount,
        from_address=from_address,
    )


def prepare_claim_returns(
    client: Any,
    loan_address: str,
    token_id: int,
    from_address: Optional[str] = None,
) -> TransactionFieldSet:
    return client.prepare_contract_call(
        loan_address, LOAN_ABI, "claimReturns", int(token_id),
        from_address=from_address,
    )
