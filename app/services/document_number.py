"""
Order Number Generation

Financial year based numbering (April-March), continuous within the year.

Format: {COMPANY_CODE}/{FY}/{SITE_CODE}/{SEQUENCE}
    e.g. DCTPL/25-26/MUM01/00001

The latest issued number is looked up by the caller (persistence lives
elsewhere); this module only derives the next one from it.
"""

import logging
import re
from datetime import date
from typing import Optional

from app.config import settings
from app.schemas.order import FinancialYearInfo, NextNumberResponse

logger = logging.getLogger(__name__)

SITE_CODE_MISSING = "SITE_CODE_MISSING"

_LEADING_INT = re.compile(r"^\s*([+-]?\d+)")


class DocumentNumberError(Exception):
    """Raised when an order number cannot be generated."""
    pass


def financial_year_info(on_date: Optional[date] = None) -> FinancialYearInfo:
    """Financial year (1 April - 31 March) containing the given date."""
    on_date = on_date or date.today()
    fy_start = on_date.year if on_date.month >= 4 else on_date.year - 1
    fy_end = fy_start + 1
    return FinancialYearInfo(
        start_date=date(fy_start, 4, 1),
        end_date=date(fy_end, 3, 31),
        label=f"{fy_start % 100:02d}-{fy_end % 100:02d}",
    )


def number_prefix(site_code: str, fy_label: str, company_code: Optional[str] = None) -> str:
    company_code = company_code or settings.COMPANY_CODE
    return f"{company_code}/{fy_label}/{site_code}/"


def parse_sequence(number: Optional[str], prefix: str) -> int:
    """Sequence part of an existing number; 0 when it does not match the prefix."""
    if not number or not number.startswith(prefix):
        return 0
    match = _LEADING_INT.match(number[len(prefix):])
    return int(match.group(1)) if match else 0


def next_order_number(
    site_code: Optional[str],
    latest_number: Optional[str] = None,
    on_date: Optional[date] = None,
    company_code: Optional[str] = None,
) -> NextNumberResponse:
    """
    Get the next order number for a site.

    Args:
        site_code: Code of the order's site
        latest_number: Highest number already issued for this site and year
        on_date: Date that selects the financial year (default: today)
        company_code: Overrides settings.COMPANY_CODE

    Raises:
        DocumentNumberError: If the site has no code
    """
    if not site_code or not site_code.strip():
        logger.warning("Order number requested for a site without a site code")
        raise DocumentNumberError(SITE_CODE_MISSING)

    fy = financial_year_info(on_date)
    prefix = number_prefix(site_code.strip(), fy.label, company_code)
    sequence = parse_sequence(latest_number, prefix) + 1
    order_number = f"{prefix}{str(sequence).zfill(settings.ORDER_NUMBER_PADDING)}"

    logger.debug("Next order number: %s (after %s)", order_number, latest_number)
    return NextNumberResponse(order_number=order_number, financial_year=fy)
