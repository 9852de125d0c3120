"""
Defensive normalization of contract-call results.

Contract reads arrive as positional tuples or as field-keyed mappings, and
individual elements may be native values, big-number wrappers exposing only a
textual form, or UI element placeholders that leaked into the data. Every
helper here takes a value and a fallback and never raises: malformed input
yields the fallback.
"""

from collections.abc import Mapping, Sequence
from decimal import Decimal
from typing import Any, Optional, Union
import math
import re
import logging

from ..config.chain_config import ZERO_ADDRESS, DESCRIPTION_PLACEHOLDER, USDC_DECIMALS
from .base import LoanRecord, InvestmentRecord, from_base_units

logger = logging.getLogger(__name__)

UI_ELEMENT_TAGS = {"Symbol(react.element)", "react.element", "react.transitional.element"}

# "[object Object]" from JS bridges, "<pkg.Cls object at 0x7f..>" from Python reprs
OBJECT_TAG_PATTERNS = [
    re.compile(r"^\[object\s.+\]$"),
    re.compile(r"^<.+ object at 0x[0-9a-fA-F]+>$"),
]

ADDRESS_PATTERN = re.compile(r"^0x[a-f0-9]{40}$")

TRUE_STRINGS = {"true", "yes", "1"}
FALSE_STRINGS = {"false", "no", "0"}


# ============================================================================
# TYPE PROBES
# ============================================================================

def _is_ui_element(value: Any) -> bool:
    if isinstance(value, Mapping):
        tag = value.get("$$typeof")
    else:
        tag = getattr(value, "$$typeof", None)
    return tag is not None and str(tag) in UI_ELEMENT_TAGS


def _is_object_tag(text: str) -> bool:
    return any(pattern.match(text) for pattern in OBJECT_TAG_PATTERNS)


def _big_number_text(value: Any) -> Optional[str]:
    """Textual form of a big-number wrapper, or None if value is not one."""
    if isinstance(value, Mapping):
        if value.get("_isBigNumber") is True:
            text = value.get("_hex", value.get("hex"))
            return None if text is None else str(text)
        if value.get("type") == "BigNumber" and "hex" in value:
            return str(value["hex"])
        return None
    if getattr(value, "_isBigNumber", False) is True:
        try:
            return str(value)
        except Exception:
            return None
    return None


def _text_of(value: Any) -> Optional[str]:
    """str() of an arbitrary object, None when it fails or is a bare object tag."""
    try:
        text = str(value)
    except Exception:
        return None
    if not text or _is_object_tag(text):
        return None
    return text


def _parse_int(text: str) -> int:
    cleaned = text.strip()
    if cleaned.lower().startswith(("0x", "-0x")):
        return int(cleaned, 16)
    return int(cleaned, 10)


def _parse_number(text: str) -> Union[int, float]:
    cleaned = text.strip()
    try:
        return _parse_int(cleaned)
    except ValueError:
        return float(cleaned)


# ============================================================================
# SCALAR COERCION
# ============================================================================

def sanitize_string(value: Any, fallback: str = "") -> str:
    """Coerce a value to trimmed text; placeholders and opaque objects yield fallback."""
    if isinstance(value, str):
        return value.strip()

    if value is None or _is_ui_element(value):
        return fallback

    if isinstance(value, bool):
        return "true" if value else "false"

    if isinstance(value, (int, float, Decimal)):
        # Huge ints exceed the interpreter's digit limit for str()
        try:
            return str(value)
        except ValueError:
            return fallback

    big_text = _big_number_text(value)
    if big_text is not None:
        try:
            return str(_parse_int(big_text))
        except ValueError:
            return big_text.strip() or fallback

    if isinstance(value, (bytes, bytearray)):
        try:
            return bytes(value).decode("utf-8").strip()
        except UnicodeDecodeError:
            return fallback

    # Containers have no meaningful single textual form
    if isinstance(value, (Mapping, list, tuple, set, frozenset)):
        return fallback

    text = _text_of(value)
    if text is None:
        return fallback
    return text.strip()


def sanitize_optional_string(value: Any) -> Optional[str]:
    """Like sanitize_string, but an empty result becomes None."""
    sanitized = sanitize_string(value, "")
    return sanitized if sanitized else None


def to_int_safe(value: Any, fallback: int = 0) -> int:
    """Coerce to an arbitrary-precision integer (truncating); fallback on failure."""
    if isinstance(value, bool):
        return fallback

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        if not math.isfinite(value):
            return fallback
        return int(value)

    if isinstance(value, Decimal):
        if not value.is_finite():
            return fallback
        return int(value)

    if isinstance(value, str):
        if not value.strip():
            return fallback
        try:
            return _parse_int(value)
        except ValueError:
            return fallback

    big_text = _big_number_text(value)
    if big_text is not None:
        try:
            return _parse_int(big_text)
        except ValueError:
            return fallback

    if value is None or isinstance(value, (Mapping, list, tuple, set, frozenset)):
        return fallback

    text = _text_of(value)
    if text is None:
        return fallback
    try:
        return _parse_int(text)
    except ValueError:
        return fallback


def to_number_safe(value: Any, fallback: Union[int, float] = 0) -> Union[int, float]:
    """Coerce to a finite int or float; fallback on non-finite or unparsable input."""
    if isinstance(value, bool):
        return fallback

    if isinstance(value, int):
        return value

    if isinstance(value, float):
        return value if math.isfinite(value) else fallback

    if isinstance(value, Decimal):
        if not value.is_finite():
            return fallback
        return int(value) if value == value.to_integral_value() else float(value)

    if isinstance(value, str):
        if not value.strip():
            return fallback
        try:
            parsed = _parse_number(value)
        except ValueError:
            return fallback
        if isinstance(parsed, float) and not math.isfinite(parsed):
            return fallback
        return parsed

    big_text = _big_number_text(value)
    if big_text is None:
        if value is None or isinstance(value, (Mapping, list, tuple, set, frozenset)):
            return fallback
        big_text = _text_of(value)
        if big_text is None:
            return fallback

    try:
        parsed = _parse_number(big_text)
    except ValueError:
        return fallback
    if isinstance(parsed, float) and not math.isfinite(parsed):
        return fallback
    return parsed


def to_boolean_safe(value: Any, fallback: bool = False) -> bool:
    """Booleans pass, numbers test non-zero, yes/no style strings map; else fallback."""
    if isinstance(value, bool):
        return value

    if isinstance(value, Decimal) and not value.is_finite():
        return fallback

    if isinstance(value, (int, float, Decimal)):
        return value != 0

    if isinstance(value, str):
        normalized = value.strip().lower()
        if normalized in TRUE_STRINGS:
            return True
        if normalized in FALSE_STRINGS:
            return False
        return fallback

    big_text = _big_number_text(value)
    if big_text is not None:
        try:
            return _parse_int(big_text) != 0
        except ValueError:
            return fallback

    return fallback


def sanitize_address(value: Any, fallback: str = ZERO_ADDRESS) -> str:
    """Lowercased 0x-prefixed 40-hex address, or fallback."""
    potential = sanitize_string(value, "").lower()
    if ADDRESS_PATTERN.match(potential):
        return potential
    return fallback


# ============================================================================
# RECORD NORMALIZATION
# ============================================================================

def _get_value(source: Any, index: int, *keys: str) -> Any:
    """
    Read one logical field from a tuple-or-mapping contract result.

    Position wins for sequences long enough to hold it; otherwise the first
    present candidate key is used.
    """
    if isinstance(source, Sequence) and not isinstance(source, (str, bytes, bytearray)):
        if len(source) > index:
            return source[index]
        return None

    if isinstance(source, Mapping):
        for key in keys:
            if key in source:
                return source[key]
        return None

    if source is None or isinstance(source, (str, bytes, bytearray)):
        return None

    for key in keys:
        if hasattr(source, key):
            return getattr(source, key, None)
    return None


def normalize_loan_details(raw: Any, address: str) -> LoanRecord:
    """
    Build a LoanRecord from a getLoanDetails() result.

    Every field is defaulted on its own; a malformed element never affects
    the others.
    """
    if isinstance(raw, (str, bytes, bytearray)) or not isinstance(raw, (Sequence, Mapping)):
        logger.debug(f"Unrecognized getLoanDetails result for {address}: {type(raw).__name__}")

    loan_amount = to_int_safe(_get_value(raw, 0, "_loanAmount", "loanAmount"))
    interest_rate = int(to_number_safe(_get_value(raw, 1, "_thankYouAmount", "thankYouAmount")))
    repayment_date = int(to_number_safe(
        _get_value(raw, 2, "_targetRepaymentDate", "targetRepaymentDate")
    ))
    funding_deadline = int(to_number_safe(
        _get_value(raw, 3, "_fundingDeadline", "fundingDeadline")
    ))
    title = sanitize_optional_string(_get_value(raw, 4, "_title", "title"))
    description = sanitize_string(
        _get_value(raw, 5, "_description", "description"),
        DESCRIPTION_PLACEHOLDER,
    ) or DESCRIPTION_PLACEHOLDER
    image_uri = sanitize_string(_get_value(raw, 6, "_baseImageURI", "baseImageURI", "imageURI"))
    borrower = sanitize_address(_get_value(raw, 7, "_borrower", "borrower"))
    total_funded = to_int_safe(_get_value(raw, 8, "_totalFunded", "totalFunded"))
    total_repaid = to_int_safe(_get_value(raw, 9, "_totalRepaidAmount", "totalRepaidAmount"))
    actual_repaid = to_int_safe(_get_value(raw, 10, "_actualRepaidAmount", "actualRepaidAmount"))
    is_active = to_boolean_safe(_get_value(raw, 11, "_isActive", "isActive"))
    is_repaid = to_boolean_safe(_get_value(raw, 12, "_isFullyRepaid", "isFullyRepaid", "isRepaid"))

    duration = max(0, repayment_date - funding_deadline)

    return LoanRecord(
        address=address,
        loan_amount=loan_amount,
        interest_rate=interest_rate,
        duration=duration,
        funding_deadline=funding_deadline,
        repayment_date=repayment_date,
        title=title,
        description=description,
        image_uri=image_uri,
        borrower=borrower,
        total_funded=total_funded,
        total_repaid_amount=total_repaid,
        actual_repaid_amount=actual_repaid,
        is_active=is_active,
        is_repaid=is_repaid,
    )


def normalize_investment_details(
    raw_loan: Any,
    loan_address: str,
    token_id: Any,
    token_value: Any,
    claimed_amount: Any,
    decimals: int = USDC_DECIMALS,
) -> InvestmentRecord:
    """
    Build an InvestmentRecord for one supporter token.

    Amounts are converted from base units to currency units. The claimable
    amount is the token's share of what has been repaid so far, pro-rata to
    the loan principal, minus what was already claimed.
    """
    loan = normalize_loan_details(raw_loan, loan_address)

    contribution = from_base_units(max(0, to_int_safe(token_value)), decimals)
    claimed = from_base_units(max(0, to_int_safe(claimed_amount)), decimals)
    principal = from_base_units(max(0, loan.loan_amount), decimals)
    total_repaid = from_base_units(max(0, loan.total_repaid_amount), decimals)
    actual_repaid = from_base_units(max(0, loan.actual_repaid_amount), decimals)

    earned = contribution * actual_repaid / principal if principal > 0 else Decimal(0)
    claimable = max(Decimal(0), earned - claimed)

    return InvestmentRecord(
        loan_address=loan_address,
        token_id=to_int_safe(token_id),
        contribution_amount=contribution,
        claimed_amount=claimed,
        claimable_amount=claimable,
        total_repaid_amount=total_repaid,
        actual_repaid_amount=actual_repaid,
        loan_amount=principal,
        loan_title=loan.title,
        loan_description=loan.description,
        loan_image_uri=loan.image_uri,
        borrower=loan.borrower,
        is_loan_active=loan.is_active,
        is_loan_repaid=loan.is_repaid,
    )
