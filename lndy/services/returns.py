"""
Return Calculator

Funding, repayment and return arithmetic over normalized loan and investment
records. Loan-level amounts stay in integer base units; investment amounts are
Decimal currency units.
"""

from dataclasses import dataclass
from decimal import Decimal, ROUND_HALF_UP
from typing import Iterable, List, Optional
import time
import logging

from ..config.chain_config import (
    BASIS_POINTS,
    CLAIM_TOLERANCE,
    HEALTH_BEHIND_POINTS,
    HEALTH_CONCERNING_POINTS,
    USD_PRECISION,
    USDC_DECIMALS,
)
from .base import LoanRecord, InvestmentRecord, RepaymentStatus, from_base_units

logger = logging.getLogger(__name__)

ZERO = Decimal(0)
HUNDRED = Decimal(100)


@dataclass(frozen=True)
class RepaymentHealth:
    """Repayment progress of an active loan against elapsed loan time"""
    time_progress: Decimal
    repayment_progress: Decimal
    status: RepaymentStatus

    def to_dict(self) -> dict:
        return {
            'time_progress': float(self.time_progress),
            'repayment_progress': float(self.repayment_progress),
            'status': self.status.value,
        }


# ============================================================================
# LOAN-LEVEL
# ============================================================================

def funded_percentage(loan: LoanRecord) -> int:
    """Whole percentage of the loan amount funded so far; 0 for a zero-amount loan."""
    if loan.loan_amount <= 0:
        return 0
    return (loan.total_funded * 100) // loan.loan_amount


def remaining_amount(loan: LoanRecord) -> int:
    """Base units still needed to fully fund the loan."""
    return max(0, loan.loan_amount - loan.total_funded)


def total_repayment(loan: LoanRecord, decimals: int = USDC_DECIMALS) -> Decimal:
    """Principal plus the thank-you amount, in currency units."""
    principal = from_base_units(loan.loan_amount, decimals)
    thank_you = principal * Decimal(loan.interest_rate) / Decimal(BASIS_POINTS)
    return principal + thank_you


def repaid_percentage(loan: LoanRecord) -> Decimal:
    """Share of the total repayment already made, as a percentage."""
    if loan.total_repaid_amount <= 0:
        return ZERO
    return Decimal(loan.actual_repaid_amount) * HUNDRED / Decimal(loan.total_repaid_amount)


def repayment_health(loan: LoanRecord, now: Optional[int] = None) -> Optional[RepaymentHealth]:
    """
    Compare repayment progress with elapsed loan time.

    Only defined for active, unrepaid loans. The loan clock starts at the
    funding deadline and ends at the target repayment date.
    """
    if not loan.is_active or loan.is_repaid:
        return None

    now = int(time.time()) if now is None else now
    total_duration = loan.repayment_date - loan.funding_deadline
    if total_duration <= 0:
        time_progress = HUNDRED if now >= loan.repayment_date else ZERO
    else:
        elapsed = Decimal(now - loan.funding_deadline)
        time_progress = max(ZERO, min(HUNDRED, elapsed * HUNDRED / Decimal(total_duration)))

    repayment_progress = min(HUNDRED, repaid_percentage(loan))

    status = RepaymentStatus.GOOD
    if repayment_progress < time_progress - HEALTH_BEHIND_POINTS:
        status = RepaymentStatus.BEHIND
    if repayment_progress < time_progress - HEALTH_CONCERNING_POINTS:
        status = RepaymentStatus.CONCERNING

    return RepaymentHealth(
        time_progress=time_progress,
        repayment_progress=repayment_progress,
        status=status,
    )


def preset_amount(remaining, percentage: int, maximum=None) -> Decimal:
    """Quick-pick amount: a percentage of what remains, capped, rounded to cents."""
    remaining = Decimal(str(remaining))
    amount = remaining * Decimal(percentage) / HUNDRED
    cap = remaining if maximum is None else Decimal(str(maximum))
    amount = max(ZERO, min(amount, cap))
    return amount.quantize(USD_PRECISION, rounding=ROUND_HALF_UP)


# ============================================================================
# INVESTMENT-LEVEL
# ============================================================================

def proportional_share(investment: InvestmentRecord) -> Decimal:
    """contribution x actual repaid / total repaid; 0 before any repayment total exists."""
    if investment.total_repaid_amount <= 0:
        return ZERO
    return (investment.contribution_amount * investment.actual_repaid_amount
            / investment.total_repaid_amount)


def has_claimed_all_available(investment: InvestmentRecord,
                              tolerance: Decimal = CLAIM_TOLERANCE) -> bool:
    """True once claims reach the proportional share, within a cent of rounding."""
    return investment.claimed_amount >= proportional_share(investment) - tolerance


def total_possible_return(investment: InvestmentRecord) -> Decimal:
    """
    Estimate of what this position could return over the life of the loan.

    Scales the contribution by total repaid over the net principal
    differential. This is a display estimate, not a settlement figure. When
    nothing has been repaid, or the divisor is zero or negative, the
    contribution itself is returned.
    """
    contribution = investment.contribution_amount
    total_repaid = investment.total_repaid_amount
    if total_repaid <= 0:
        return contribution

    divisor = total_repaid - (investment.actual_repaid_amount - contribution)
    if divisor <= 0:
        logger.debug(f"Non-positive return divisor for token {investment.token_id} "
                     f"on {investment.loan_address}: {divisor}")
        return contribution

    return contribution * total_repaid / divisor


def return_percentage(investment: InvestmentRecord) -> Decimal:
    """Claimed plus claimable, as a percentage of the contribution."""
    if investment.contribution_amount <= 0:
        return ZERO
    earned = investment.claimed_amount + investment.claimable_amount
    return earned * HUNDRED / investment.contribution_amount


def sort_investments(investments: Iterable[InvestmentRecord]) -> List[InvestmentRecord]:
    """Positions with something to claim first, then larger contributions first."""
    return sorted(
        investments,
        key=lambda inv: (inv.claimable_amount <= 0, -inv.contribution_amount),
    )
