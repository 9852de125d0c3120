"""
Unit tests for notification builders and the pass-through HTTP client.
"""
from decimal import Decimal
from unittest.mock import MagicMock
import sys
import os

import requests

# Add parent directory to path for imports
sys.path.insert(0, os.path.dirname(os.path.dirname(os.path.abspath(__file__))))

from lndy.services.notifications import (
    NotificationClient,
    NotificationType,
    contributor_repayment_notification,
    format_amount,
    loan_contributed_notification,
    loan_created_notification,
    loan_repaid_notification,
)

LOAN = "0x" + "a1" * 20
BORROWER = "0x" + "be" * 20
CONTRIBUTOR = "0x" + "5a" * 20
BASE_URL = "https://lndy.example/api/notifications"


def make_client(post=None, get=None):
    session = MagicMock(spec=requests.Session)
    session.headers = {}
    if post is not None:
        session.post = post
    if get is not None:
        session.get = get
    return NotificationClient(BASE_URL, session=session), session


def ok_response(body=None):
    response = MagicMock()
    response.raise_for_status.return_value = None
    response.json.return_value = body or {'success': True}
    return response


class TestBuilders:
    """Test message wording."""

    def test_format_amount(self):
        assert format_amount(Decimal("12.50")) == "12.5"
        assert format_amount(100) == "100"
        assert format_amount("1E+2") == "100"
        assert format_amount("abc") == "abc"

    def test_loan_created(self):
        notification = loan_created_notification(LOAN, BORROWER, "Seed", Decimal("500.00"))

        assert notification.type == NotificationType.LOAN_CREATED
        assert notification.title == "🎉 New Loan Created!"
        assert notification.message == '"Seed" - 500 USDC loan is now available for funding'

        broadcast = loan_created_notification(LOAN, BORROWER, "Seed", 500, broadcast=True)
        assert broadcast.title == "🌟 New Loan Available!"

    def test_loan_contributed(self):
        notification = loan_contributed_notification(LOAN, BORROWER, CONTRIBUTOR, "25.5", "Seed")

        assert notification.title == "💰 New Contribution!"
        assert notification.message == 'Someone contributed 25.5 USDC to your loan "Seed"'
        assert notification.amount == "25.5 USDC"
        assert notification.contributor_address == CONTRIBUTOR

    def test_loan_repaid(self):
        partial = loan_repaid_notification(LOAN, BORROWER, 10, "Seed", is_partial=True)
        full = loan_repaid_notification(LOAN, BORROWER, 10, "", is_partial=False)

        assert partial.title == "💸 Partial Repayment!"
        assert partial.message == '"Seed" received a partial repayment of 10 USDC'
        assert full.title == "🎉 Loan Repaid!"
        assert full.message == '"Untitled Loan" received a full repayment of 10 USDC'

    def test_contributor_repayment(self):
        notification = contributor_repayment_notification(
            LOAN, BORROWER, 10, "Seed", is_partial=True, target_fids=[3, 4]
        )

        assert notification.message == 'A loan you contributed to "Seed" received a partial repayment of 10 USDC'
        assert notification.to_payload()['targetFids'] == [3, 4]

    def test_payload_drops_missing_fields(self):
        payload = loan_created_notification(LOAN, BORROWER, "Seed", 1).to_payload()

        assert payload['type'] == "loan_created"
        assert payload['loanId'] == LOAN
        assert 'amount' not in payload
        assert 'contributorAddress' not in payload


class TestNotificationClient:
    """Test the HTTP pass-through; failures never raise."""

    def test_send_posts_payload(self):
        post = MagicMock(return_value=ok_response())
        client, _ = make_client(post=post)
        notification = loan_created_notification(LOAN, BORROWER, "Seed", 1)

        assert client.send(notification) is True

        args, kwargs = post.call_args
        assert args[0] == f"{BASE_URL}/send"
        assert kwargs['json'] == notification.to_payload()
        assert 'timeout' in kwargs

    def test_send_failure_returns_false(self):
        post = MagicMock(side_effect=requests.exceptions.ConnectionError("down"))
        client, _ = make_client(post=post)

        assert client.send(loan_created_notification(LOAN, BORROWER, "Seed", 1)) is False

    def test_http_error_returns_false(self):
        response = MagicMock()
        response.raise_for_status.side_effect = requests.exceptions.HTTPError("500")
        client, _ = make_client(post=MagicMock(return_value=response))

        assert client.subscribe(42, "token", CONTRIBUTOR) is False

    def test_subscribe(self):
        post = MagicMock(return_value=ok_response())
        client, _ = make_client(post=post)

        assert client.subscribe(42, "token", CONTRIBUTOR) is True
        assert post.call_args[1]['json'] == {
            'fid': 42,
            'notificationToken': "token",
            'walletAddress': CONTRIBUTOR,
        }

    def test_subscribe_requires_fields(self):
        post = MagicMock()
        client, _ = make_client(post=post)

        assert client.subscribe(0, "token", CONTRIBUTOR) is False
        post.assert_not_called()

    def test_enabled_user_fids(self):
        get = MagicMock(return_value=ok_response({'success': True, 'fids': [1, "2", "x", None]}))
        client, _ = make_client(get=get)

        assert client.enabled_user_fids() == [1, 2]
        assert get.call_args[0][0] == f"{BASE_URL}/enabled-users"

    def test_enabled_user_fids_failure(self):
        client, _ = make_client(get=MagicMock(side_effect=requests.exceptions.Timeout()))
        assert client.enabled_user_fids() == []
