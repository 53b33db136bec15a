"""
Rate Manager - yearly USD/JPY rates and yen -> USD income conversion.
Builds the dense 1980-2025 rate table once (gap years interpolated) and holds the
conversion helpers the page script mirrors in the browser.
"""

import math
import os
from datetime import datetime
from decimal import Decimal, ROUND_HALF_UP, localcontext
from pathlib import Path
from typing import Optional

from dotenv import load_dotenv
from openpyxl import Workbook
from openpyxl.styles import Font, Alignment, PatternFill
from openpyxl.utils import get_column_letter

_base = Path(__file__).resolve().parent
load_dotenv(_base / ".env")

START_YEAR = 1980
END_YEAR = 2025
YEN_PER_MAN = 10000  # 1 万円
DEFAULT_TITLE = "Income in USD"

_RATE_PLACES = Decimal("0.0001")
_USD_PLACES = Decimal("1")

# Average yearly JPY per USD. Years not listed are filled by expand_rates().
KNOWN_RATES = [
    {"year": 1980, "rate": 226.7408},
    {"year": 1981, "rate": 220.5358},
    {"year": 1982, "rate": 249.0767},
    {"year": 1983, "rate": 237.5117},
    {"year": 1984, "rate": 237.5225},
    {"year": 1985, "rate": 238.5358},
    {"year": 1990, "rate": 144.7925},
    {"year": 1991, "rate": 134.7067},
    {"year": 1992, "rate": 126.6513},
    {"year": 1993, "rate": 111.1978},
    {"year": 1994, "rate": 102.2078},
    {"year": 1995, "rate": 94.0596},
    {"year": 2000, "rate": 107.7655},
    {"year": 2001, "rate": 121.5289},
    {"year": 2002, "rate": 125.388},
    {"year": 2003, "rate": 115.9335},
    {"year": 2004, "rate": 108.1926},
    {"year": 2005, "rate": 110.2182},
    {"year": 2010, "rate": 87.7799},
    {"year": 2011, "rate": 79.807},
    {"year": 2012, "rate": 79.7905},
    {"year": 2013, "rate": 97.5957},
    {"year": 2014, "rate": 105.9448},
    {"year": 2015, "rate": 121.044},
    {"year": 2020, "rate": 106.7746},
    {"year": 2021, "rate": 109.7543},
    {"year": 2022, "rate": 131.4981},
    {"year": 2023, "rate": 140.4911},
    {"year": 2024, "rate": 151.3663},
    {"year": 2025, "rate": 148.2193},
]


def load_settings() -> dict:
    """Read runtime settings from the environment (.env already loaded)."""
    return {
        "SITE_TITLE": os.environ.get("SITE_TITLE", "").strip() or DEFAULT_TITLE,
        "HOST": os.environ.get("HOST", "0.0.0.0"),
        "PORT": int(os.environ.get("PORT", 5000)),
        "DEBUG": os.environ.get("FLASK_DEBUG", "").lower() in ("1", "true", "yes"),
    }


def _round_rate(value) -> float:
    # Half-up on the decimal value, so 191.58665 -> 191.5867 regardless of float noise
    return float(Decimal(str(value)).quantize(_RATE_PLACES, rounding=ROUND_HALF_UP))


def expand_rates(known_rates: list[dict], start_year: int = START_YEAR, end_year: int = END_YEAR) -> list[dict]:
    """
    Expand sparse {year, rate} entries into one entry per year in [start_year, end_year].
    Gap years between two known years are linearly interpolated; gap years outside the
    known range take the nearest known rate. Rates are rounded to 4 decimals.
    """
    known = sorted(known_rates, key=lambda r: r["year"])
    lookup = {r["year"]: r["rate"] for r in known}

    table = []
    for year in range(start_year, end_year + 1):
        if year in lookup:
            table.append({"year": year, "rate": _round_rate(lookup[year])})
            continue

        prev = None
        for r in known:
            if r["year"] < year:
                prev = r
            else:
                break
        nxt = None
        for r in reversed(known):
            if r["year"] > year:
                nxt = r
            else:
                break

        if prev and nxt and prev["year"] != nxt["year"]:
            lo = Decimal(str(prev["rate"]))
            hi = Decimal(str(nxt["rate"]))
            rate = lo + (hi - lo) * (year - prev["year"]) / (nxt["year"] - prev["year"])
            table.append({"year": year, "rate": _round_rate(rate)})
        elif prev:
            table.append({"year": year, "rate": prev["rate"]})
        elif nxt:
            table.append({"year": year, "rate": nxt["rate"]})
        else:
            table.append({"year": year, "rate": 0})
    return table


def index_rates(table: list[dict], known_rates: list[dict]) -> list[dict]:
    """Annotate expanded entries with their row index and whether the rate was filled in."""
    known_years = {r["year"] for r in known_rates}
    return [
        {"index": i, "year": e["year"], "rate": e["rate"], "interpolated": e["year"] not in known_years}
        for i, e in enumerate(table)
    ]


_RATE_TABLE: Optional[list[dict]] = None


def get_rate_table() -> list[dict]:
    """Indexed 1980-2025 table, built on first use and shared read-only afterwards."""
    global _RATE_TABLE
    if _RATE_TABLE is None:
        _RATE_TABLE = index_rates(expand_rates(KNOWN_RATES), KNOWN_RATES)
    return _RATE_TABLE


def find_rate(table: list[dict], year) -> Optional[dict]:
    try:
        year = int(year)
    except (TypeError, ValueError):
        return None
    for entry in table:
        if entry["year"] == year:
            return entry
    return None


def parse_man_yen(value) -> float:
    """Lenient parse of a 万円 amount. Blank, non-numeric, non-finite and non-positive -> 0.0."""
    if value is None or isinstance(value, bool):
        return 0.0
    if isinstance(value, str):
        value = value.replace(",", "").strip()
        if not value:
            return 0.0
    try:
        v = float(value)
    except (TypeError, ValueError):
        return 0.0
    if not math.isfinite(v) or v <= 0:
        return 0.0
    return v


def convert_man_yen(man_yen, rate) -> float:
    """USD value of an income given in 万円 at a JPY-per-USD rate; 0.0 when there is nothing to convert."""
    amount = parse_man_yen(man_yen)
    if amount <= 0 or not rate or rate <= 0:
        return 0.0
    usd = amount * YEN_PER_MAN / rate
    if not math.isfinite(usd):
        return 0.0
    return usd


def format_usd(value) -> str:
    """'$33,333' style, no decimals. '-' for empty, negative or non-finite values."""
    try:
        v = float(value)
    except (TypeError, ValueError):
        return "-"
    if not math.isfinite(v) or v <= 0:
        return "-"
    # Floats reach ~1.8e308; default 28-digit precision cannot quantize that
    with localcontext() as ctx:
        ctx.prec = 400
        whole = Decimal(str(v)).quantize(_USD_PLACES, rounding=ROUND_HALF_UP)
    return f"${int(whole):,}"


def summarize_income(table: list[dict], amounts: dict) -> dict:
    """
    Convert a {year: 万円} mapping against the table. Returns one row per table year
    (unentered years convert to 0 and display '-') plus USD and 万円 totals.
    """
    by_year = {}
    for k, v in (amounts or {}).items():
        try:
            by_year[int(k)] = v
        except (TypeError, ValueError):
            continue

    rows = []
    total_usd = 0.0
    total_man = 0.0
    for entry in table:
        man_yen = parse_man_yen(by_year.get(entry["year"]))
        usd = convert_man_yen(man_yen, entry["rate"])
        if usd <= 0:
            man_yen = 0.0
        total_usd += usd
        total_man += man_yen
        rows.append({
            "year": entry["year"],
            "rate": entry["rate"],
            "man_yen": man_yen,
            "usd": usd,
            "display": format_usd(usd),
        })
    return {
        "rows": rows,
        "total_usd": total_usd,
        "total_man_yen": total_man,
        "total_display": format_usd(total_usd),
    }


def build_rate_workbook(table: list[dict], title: str = DEFAULT_TITLE) -> Workbook:
    """Excel workbook with the rate table; interpolated years highlighted."""
    wb = Workbook()
    ws = wb.active
    ws.title = "Rates"

    ws.append([title])
    ws["A1"].font = Font(bold=True, size=13)
    ws.append([f"Exported {datetime.now().strftime('%Y-%m-%d %H:%M')}"])
    ws.append([])

    headers = ["Year", "JPY per USD", "Source", "USD per 1万円"]
    ws.append(headers)
    header_row = ws.max_row
    header_fill = PatternFill(start_color="1E293B", end_color="1E293B", fill_type="solid")
    for col in range(1, len(headers) + 1):
        cell = ws.cell(header_row, col)
        cell.font = Font(bold=True, color="F8FAFC")
        cell.fill = header_fill
        cell.alignment = Alignment(horizontal="center")

    gap_fill = PatternFill(start_color="FEF3C7", end_color="FEF3C7", fill_type="solid")
    for e in table:
        interpolated = e.get("interpolated", False)
        ws.append([
            e["year"],
            e["rate"],
            "Interpolated" if interpolated else "Average",
            round(convert_man_yen(1, e["rate"]), 2),
        ])
        ws.cell(ws.max_row, 2).number_format = "0.0000"
        ws.cell(ws.max_row, 4).number_format = "#,##0.00"
        if interpolated:
            for col in range(1, len(headers) + 1):
                ws.cell(ws.max_row, col).fill = gap_fill

    for col, width in enumerate([8, 14, 14, 14], start=1):
        ws.column_dimensions[get_column_letter(col)].width = width
    ws.freeze_panes = ws.cell(header_row + 1, 1)
    return wb
