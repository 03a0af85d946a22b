"""
EasyTax GST calculator — pure functions, no I/O.

  validate_gstin()     — 15-character structural check (checksum digit not verified)
  split_gst()          — tax on a taxable value, split into CGST/SGST/IGST
  compute_due_dates()  — statutory due date for a return type and filing period

split_gst() treats every transaction as intra-state: CGST is half the tax,
SGST the remainder and IGST 0. Inter-state supplies are not distinguished here.
"""
from __future__ import annotations

import calendar
import re
from datetime import MAXYEAR, MINYEAR, date, timedelta
from typing import Optional

from easytax.agents.evaluator_agent.schemas import GSTDueDates, GSTSplit
from easytax.agents.input_agent.schemas import ReturnType

# 2-digit state code, 5-letter PAN prefix, 4 digits, PAN check letter,
# entity code, literal Z, checksum character
GSTIN_REGEX = re.compile(r"^[0-9]{2}[A-Z]{5}[0-9]{4}[A-Z][1-9A-Z]Z[0-9A-Z]$")
GSTIN_LENGTH = 15

# Day of the following month on which each periodic return falls due
_DUE_DAY: dict[str, int] = {
    ReturnType.gstr1.value: 11,
    ReturnType.gstr3b.value: 20,
}
_DEFAULT_DUE_DAY = 20
EXTENSION_DAYS = 7

# Filing years accepted from callers (GST began July 2017)
GST_MIN_YEAR = 2017
GST_MAX_YEAR = 2100

_MONTHS = {name.lower(): i for i, name in enumerate(calendar.month_name) if name}
_MONTHS.update({abbr.lower(): i for i, abbr in enumerate(calendar.month_abbr) if abbr})


def validate_gstin(gstin: Optional[str]) -> bool:
    """True iff gstin is exactly 15 characters and matches the GSTIN shape."""
    if not gstin or not isinstance(gstin, str):
        return False
    if len(gstin) != GSTIN_LENGTH:
        return False
    return GSTIN_REGEX.match(gstin) is not None


def split_gst(taxable_value: float, rate: float) -> GSTSplit:
    """
    GST on taxable_value at rate (a fraction: 0.18 for 18%).
    Intra-state only: the tax is halved into CGST and SGST, IGST is always 0.
    SGST is the remainder after CGST, so cgst + sgst == total_gst to the paisa
    and an odd paisa leaves the halves one paisa apart.
    """
    total = round(taxable_value * rate, 2)
    cgst = round(total / 2, 2)
    sgst = round(total - cgst, 2)
    return GSTSplit(total_gst=total, cgst=cgst, sgst=sgst, igst=0.0)


def parse_month(month: str | int | None) -> Optional[int]:
    """'April', 'apr', '4' or 4 → 4. None when unrecognisable."""
    if month is None:
        return None
    text = str(month).strip().lower()
    if text.isdigit():
        value = int(text)
        return value if 1 <= value <= 12 else None
    return _MONTHS.get(text)


def compute_due_dates(return_type: str, month: str | int | None, year: str | int | None) -> GSTDueDates:
    """
    Due dates for a return covering (month, year).

      GSTR1  → 11th of the following month
      GSTR3B → 20th of the following month
      GSTR9  → 31 December of year + 1
      other  → 20th of the following month

    extended_due_date is always original + 7 days. A missing or unparsable
    period falls back to the current month; so does a year whose due dates
    would land outside the calendar range of datetime.date.
    """
    today = date.today()
    month_no = parse_month(month) or today.month
    try:
        year_no = int(str(year).strip())
    except (TypeError, ValueError):
        year_no = today.year
    if not MINYEAR <= year_no < MAXYEAR - 1:
        year_no = today.year

    if (return_type or "").upper() == ReturnType.gstr9.value:
        original = date(year_no + 1, 12, 31)
    else:
        day = _DUE_DAY.get((return_type or "").upper(), _DEFAULT_DUE_DAY)
        if month_no == 12:
            original = date(year_no + 1, 1, day)
        else:
            original = date(year_no, month_no + 1, day)

    return GSTDueDates(
        original_due_date=original,
        extended_due_date=original + timedelta(days=EXTENSION_DAYS),
    )
