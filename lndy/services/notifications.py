"""
Notification Module

Message builders for loan lifecycle events, and a thin HTTP client for the
notification endpoints (send / subscribe / enabled-users). Notifications are
best-effort: the client logs failures and never raises.
"""

from dataclasses import dataclass, field
from decimal import Decimal, InvalidOperation
from enum import Enum
from typing import Any, Dict, List, Optional
import logging

import requests

from ..config.chain_config import NOTIFICATIONS_URL, REQUEST_TIMEOUT
from .sanitize import to_int_safe

logger = logging.getLogger(__name__)

UNTITLED_LOAN = "Untitled Loan"


class NotificationType(Enum):
    """Loan lifecycle events that produce a notification"""
    LOAN_CREATED = "loan_created"
    LOAN_CONTRIBUTED = "loan_contributed"
    LOAN_REPAID = "loan_repaid"


@dataclass
class NotificationData:
    """Payload accepted by the send endpoint"""
    type: NotificationType
    title: str
    message: str
    loan_id: Optional[str] = None
    amount: Optional[str] = None
    contributor_address: Optional[str] = None
    borrower_address: Optional[str] = None
    target_fids: List[int] = field(default_factory=list)

    def to_payload(self) -> Dict[str, Any]:
        payload = {
            'type': self.type.value,
            'title': self.title,
            'message': self.message,
            'loanId': self.loan_id,
            'amount': self.amount,
            'contributorAddress': self.contributor_address,
            'borrowerAddress': self.borrower_address,
            'targetFids': list(self.target_fids),
        }
        return {key: value for key, value in payload.items() if value is not None}


def format_amount(amount) -> str:
    """Display form of a currency amount without trailing zeros: 12.50 -> '12.5'."""
    try:
        value = Decimal(str(amount))
    except (InvalidOperation, ValueError):
        return str(amount)
    if not value.is_finite():
        return str(amount)
    if value == value.to_integral_value():
        return str(value.quantize(Decimal(1)))
    return format(value.normalize(), 'f')


# ============================================================================
# MESSAGE BUILDERS
# ============================================================================

def loan_created_notification(
    loan_id: str,
    borrower_address: str,
    title: str,
    loan_amount,
    broadcast: bool = False,
) -> NotificationData:
    """New loan. `broadcast` words it for everyone rather than the borrower."""
    return NotificationData(
        type=NotificationType.LOAN_CREATED,
        title="🌟 New Loan Available!" if broadcast else "🎉 New Loan Created!",
        message=f'"{title or UNTITLED_LOAN}" - {format_amount(loan_amount)} USDC loan is now available for funding',
        loan_id=loan_id,
        borrower_address=borrower_address,
    )


def loan_contributed_notification(
    loan_id: str,
    borrower_address: str,
    contributor_address: str,
    amount,
    loan_title: str,
) -> NotificationData:
    """Tells the borrower someone funded their loan."""
    amount_text = format_amount(amount)
    return NotificationData(
        type=NotificationType.LOAN_CONTRIBUTED,
        title="💰 New Contribution!",
        message=f'Someone contributed {amount_text} USDC to your loan "{loan_title or UNTITLED_LOAN}"',
        loan_id=loan_id,
        amount=f"{amount_text} USDC",
        contributor_address=contributor_address,
        borrower_address=borrower_address,
    )


def _repayment_title(is_partial: bool) -> str:
    return "💸 Partial Repayment!" if is_partial else "🎉 Loan Repaid!"


def loan_repaid_notification(
    loan_id: str,
    borrower_address: str,
    amount,
    loan_title: str,
    is_partial: bool,
) -> NotificationData:
    amount_text = format_amount(amount)
    kind = "partial" if is_partial else "full"
    return NotificationData(
        type=NotificationType.LOAN_REPAID,
        title=_repayment_title(is_partial),
        message=f'"{loan_title or UNTITLED_LOAN}" received a {kind} repayment of {amount_text} USDC',
        loan_id=loan_id,
        amount=f"{amount_text} USDC",
        borrower_address=borrower_address,
    )


def contributor_repayment_notification(
    loan_id: str,
    borrower_address: str,
    amount,
    loan_title: str,
    is_partial: bool,
    target_fids: Optional[List[int]] = None,
) -> NotificationData:
    """Repayment news addressed to the loan's supporters."""
    amount_text = format_amount(amount)
    kind = "partial" if is_partial else "full"
    return NotificationData(
        type=NotificationType.LOAN_REPAID,
        title=_repayment_title(is_partial),
        message=(f'A loan you contributed to "{loan_title or UNTITLED_LOAN}" received a '
                 f'{kind} repayment of {amount_text} USDC'),
        loan_id=loan_id,
        amount=f"{amount_text} USDC",
        borrower_address=borrower_address,
        target_fids=list(target_fids or []),
    )


# ============================================================================
# HTTP CLIENT
# ============================================================================

class NotificationClient:
    """Pass-through client for the notification endpoints"""

    def __init__(self, base_url: str = NOTIFICATIONS_URL, session: Optional[requests.Session] = None):
        self.base_url = base_url.rstrip('/')
        self.session = session or requests.Session()
        self.session.headers.update({
            'Content-Type': 'application/json',
            'Accept': 'application/json',
        })

    def _url(self, endpoint: str) -> str:
        return f"{self.base_url}/{endpoint}"

    def send(self, notification: NotificationData) -> bool:
        """POST /send. True when the endpoint accepted the notification."""
        try:
            response = self.session.post(
                self._url('send'), json=notification.to_payload(), timeout=REQUEST_TIMEOUT
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Failed to send {notification.type.value} notification: {e}")
            return False

        logger.info(f"Notification sent: {notification.title}")
        return True

    def subscribe(self, fid: int, notification_token: str, wallet_address: str) -> bool:
        """POST /subscribe. All three fields are required."""
        if not fid or not notification_token or not wallet_address:
            logger.warning("Notification subscription skipped: missing fid, token or wallet address")
            return False

        try:
            response = self.session.post(
                self._url('subscribe'),
                json={
                    'fid': fid,
                    'notificationToken': notification_token,
                    'walletAddress': wallet_address,
                },
                timeout=REQUEST_TIMEOUT,
            )
            response.raise_for_status()
        except requests.exceptions.RequestException as e:
            logger.error(f"Notification subscription failed for fid {fid}: {e}")
            return False

        logger.info(f"Subscribed fid {fid} to notifications")
        return True

    def enabled_user_fids(self) -> List[int]:
        """GET /enabled-users. Invalid entries are dropped; failures give []."""
        try:
            response = self.session.get(self._url('enabled-users'), timeout=REQUEST_TIMEOUT)
            response.raise_for_status()
            body = response.json()
        except (requests.exceptions.RequestException, ValueError) as e:
            logger.error(f"Failed to fetch notification-enabled users: {e}")
            return []

        fids = body.get('fids') if isinstance(body, dict) else None
        return [fid for fid in (to_int_safe(raw, -1) for raw in (fids or [])) if fid > 0]
