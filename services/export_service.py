"""
Excel export for asset registers and transfer items.
Groups active assets by type, category and purchase month, and writes
styled workbooks with openpyxl.
"""

import json
import logging
import re
from datetime import date, datetime
from io import BytesIO
from typing import Any, Dict, Iterable, List, Optional, Sequence, Tuple

import pandas as pd
from openpyxl import Workbook
from openpyxl.styles import Alignment, Border, Font, PatternFill, Side
from openpyxl.utils import get_column_letter

from config.constants import (
    DISPLAY_DATE_FORMAT, EXCEL_MAX_COLUMN_WIDTH, EXCEL_MIN_COLUMN_WIDTH,
    EXCEL_SHEET_NAME_LIMIT, MONTH_LABELS,
)
from core.errors import TransportError
from core.models import parse_date, resolve_person

logger = logging.getLogger("TransferPortal")

# Styling constants
HEADER_FILL = PatternFill(start_color="1E3A8A", end_color="1E3A8A", fill_type="solid")
HEADER_FONT = Font(bold=True, color="FFFFFF", size=11)
HEADER_ALIGNMENT = Alignment(horizontal="center", vertical="center", wrap_text=True)
SUMMARY_FILL = PatternFill(start_color="D9E1F2", end_color="D9E1F2", fill_type="solid")
SECTION_FONT = Font(bold=True, size=12)
DATA_ALIGNMENT = Alignment(vertical="top", wrap_text=True)
CELL_BORDER = Border(
    left=Side(style='thin', color='D1D5DB'),
    right=Side(style='thin', color='D1D5DB'),
    top=Side(style='thin', color='D1D5DB'),
    bottom=Side(style='thin', color='D1D5DB')
)

INVALID_SHEET_CHARS = re.compile(r"[\\/*?:\[\]]")
ISO_DATE_PREFIX = re.compile(r"^\d{4}-\d{2}-\d{2}")
EMPTY_SHEET_TEXT = "No data available"


# ============================================
# GROUPING KEYS
# ============================================
def _ref_name(ref) -> str:
    if isinstance(ref, dict):
        return str(ref.get("name") or "")
    return ""


def type_name(asset: dict) -> str:
    """Asset type label used for both display and grouping."""
    return _ref_name(asset.get("types")) or _ref_name(asset.get("type")) or "Unknown Type"


def category_name(asset: dict) -> str:
    return _ref_name(asset.get("categories")) or _ref_name(asset.get("category")) or "Uncategorized"


def active_assets(assets: Iterable[dict]) -> List[dict]:
    """Only registered assets (not consumables) that are still in service."""
    return [
        a for a in assets
        if str(a.get("classification") or "").lower() == "asset"
        and str(a.get("record_status") or "").lower() == "active"
    ]


# ============================================
# SUMMARY AGGREGATION
# ============================================
def _year_month_table(subset: pd.DataFrame) -> pd.DataFrame:
    if subset.empty:
        counts = pd.DataFrame(index=pd.Index([], dtype="int64"))
    else:
        counts = pd.crosstab(subset["year"], subset["month"])
    counts = counts.reindex(columns=range(1, 13), fill_value=0)
    counts.columns = MONTH_LABELS
    counts = counts.sort_index(ascending=False)
    counts["Total"] = counts.sum(axis=1)
    counts.index.name = "Year"
    return counts.astype(int)


def summarize_assets(assets: Iterable[dict]) -> Dict[str, Dict[str, pd.DataFrame]]:
    """
    Purchase counts per type -> category -> year x month.

    Groups keep first-seen order. Each table has one row per purchase year
    (newest first), a column per month and a Total column. Assets without a
    usable purchase date still create their group but add no counts.
    """
    summary: Dict[str, Dict[str, pd.DataFrame]] = {}
    records = []

    for asset in assets:
        t_name, c_name = type_name(asset), category_name(asset)
        summary.setdefault(t_name, {}).setdefault(c_name, None)
        purchased = parse_date(asset.get("purchase_date"))
        if purchased is None:
            continue
        records.append({"type": t_name, "category": c_name,
                        "year": purchased.year, "month": purchased.month})

    frame = pd.DataFrame(records, columns=["type", "category", "year", "month"])
    for t_name, categories in summary.items():
        for c_name in categories:
            subset = frame[(frame["type"] == t_name) & (frame["category"] == c_name)]
            categories[c_name] = _year_month_table(subset)

    return summary


# ============================================
# ROW MAPPERS
# ============================================
def format_header_label(key: str) -> str:
    """'purchase_date' -> 'Purchase Date'"""
    text = re.sub(r"\s+", " ", key.replace("_", " ")).strip()
    return re.sub(r"\b\w", lambda m: m.group().upper(), text)


def _export_date(value) -> str:
    parsed = parse_date(value)
    return parsed.strftime(DISPLAY_DATE_FORMAT) if parsed else ""


def _export_datetime(value) -> str:
    if not value:
        return ""
    try:
        parsed = datetime.fromisoformat(str(value).strip().replace("Z", "+00:00"))
    except ValueError:
        return ""
    return parsed.strftime(f"{DISPLAY_DATE_FORMAT} %H:%M:%S")


def normalize_value(value) -> Any:
    """Make a spec value writable to a cell."""
    if value is None:
        return ""
    if isinstance(value, str):
        if ISO_DATE_PREFIX.match(value[:10]) and parse_date(value):
            return _export_date(value)
        return value
    if isinstance(value, (bool, int, float)):
        return value
    if isinstance(value, list):
        return ", ".join(str(v) for v in value)
    return json.dumps(value, default=str)


def merge_specs(specs) -> dict:
    """
    Flatten an asset's specs.

    A list holds a main spec object plus optional {"field", "value"}
    fragments; fragments override main-spec keys.
    """
    if not specs:
        return {}
    if isinstance(specs, dict):
        return specs
    if not isinstance(specs, list):
        return {}

    objects = [s for s in specs if isinstance(s, dict)]
    main = (
        next((s for s in objects if s.get("type_id")), None)
        or next((s for s in objects if "field" not in s), None)
        or (objects[0] if objects else {})
    )
    fragments = {
        s["field"]: s["value"] for s in objects if "field" in s and "value" in s
    }
    merged = dict(main)
    merged.update(fragments)
    return merged


def map_asset_row(asset: dict, today: date = None) -> Dict[str, Any]:
    """Flat export row for one asset, spec keys appended as extra columns."""
    today = today or date.today()
    purchase_year = asset.get("purchase_year")
    owner = asset.get("owner") or {}

    row = {
        "Classification": asset.get("classification") or "",
        "Condition Status": asset.get("condition_status") or "",
        "Record Status": asset.get("record_status") or "",
        "Register Number": asset.get("register_number") or "",
        "Entry Code": asset.get("entry_code") or "",
        "Asset Type": _ref_name(asset.get("types")) or _ref_name(asset.get("type")),
        "Category": _ref_name(asset.get("categories")) or _ref_name(asset.get("category")),
        "Brand": _ref_name(asset.get("brands")) or _ref_name(asset.get("brand")),
        "Model": _ref_name(asset.get("model")),
        "Age": today.year - int(purchase_year) if purchase_year else "",
        "Purchase Date": _export_date(asset.get("purchase_date")),
        "Purchase Year": purchase_year or "",
        "Purpose": asset.get("purpose") or "",
        "Cost Center": _ref_name(asset.get("costcenter")),
        "Department": _ref_name(asset.get("department")),
        "Location": _ref_name(asset.get("location")),
        "Owner Name": owner.get("full_name") or "",
        "Owner Ramco": owner.get("ramco_id") or "",
        "NBV": asset.get("nbv") or "",
        "Unit Price": asset.get("unit_price") or "",
        "Disposed Date": _export_date(asset.get("disposed_date")),
    }

    for key, value in merge_specs(asset.get("specs")).items():
        # Identifier columns are internal
        if not key or "id" in key.lower():
            continue
        row[format_header_label(key)] = normalize_value(value)

    return row


def _item_status(item: dict) -> str:
    for field_name in ("status", "acceptance_status", "approval_status", "transfer_status", "status_label"):
        if item.get(field_name):
            return str(item[field_name])
    return ""


def map_transfer_item_rows(items: Iterable[dict]) -> List[Dict[str, Any]]:
    rows = []
    for item in items or []:
        asset = item.get("asset") or {}
        transfer = item.get("transfer") or {}
        rows.append({
            "Item ID": item.get("id", ""),
            "Transfer ID": item.get("transfer_id") or transfer.get("id") or "",
            "Transfer By": resolve_person(item.get("transfer_by")),
            "New Owner": resolve_person(item.get("new_owner")),
            "Type": _ref_name(asset.get("type")) or _ref_name(item.get("type")),
            "Register Number": asset.get("register_number") or asset.get("id") or "",
            "Current Owner": resolve_person(item.get("current_owner")),
            "Application Date": _export_datetime(item.get("transfer_date")),
            "Effective Date": _export_date(item.get("effective_date")),
            "Approval Date": _export_datetime(item.get("approval_date") or item.get("approved_date")),
            "Acceptance Date": _export_datetime(item.get("acceptance_date")),
            "Status": _item_status(item),
        })
    return rows


# ============================================
# MANAGER SHEETS
# ============================================
def _as_int(value) -> Optional[int]:
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def collect_manager_ids(api, types: Sequence[dict], manager_id=None) -> List[int]:
    """Manager ids from the managers endpoint, the asset types, and an explicit id."""
    collected: Dict[int, None] = {}
    try:
        managers = api.get_asset_managers()
    except TransportError as e:
        logger.warning(f"Manager list unavailable, using asset types only: {e}")
        managers = []

    for entry in managers:
        if isinstance(entry, dict):
            found = _as_int(entry.get("manager_id") or entry.get("id"))
            if found is not None:
                collected[found] = None
    for t in types or []:
        found = _as_int(t.get("id"))
        if found is not None:
            collected[found] = None
    explicit = _as_int(manager_id)
    if explicit:
        collected[explicit] = None
    return list(collected)


def sheet_title(name: str) -> str:
    """Excel-safe worksheet name."""
    cleaned = INVALID_SHEET_CHARS.sub("-", name or "").strip()
    return cleaned[:EXCEL_SHEET_NAME_LIMIT] or "Sheet"


def manager_sheet_name(manager_id: int, types: Sequence[dict]) -> str:
    for t in types or []:
        if _as_int(t.get("id")) == manager_id and t.get("name"):
            return sheet_title(str(t["name"]))
    return sheet_title(f"Manager {manager_id}")


# ============================================
# WORKBOOK WRITERS
# ============================================
def _style_header(cell, fill=HEADER_FILL, font=HEADER_FONT):
    cell.fill = fill
    cell.font = font
    cell.alignment = HEADER_ALIGNMENT
    cell.border = CELL_BORDER


def _autofit(ws, headers: List[str], rows: List[Dict[str, Any]], start_col: int = 1):
    for offset, header in enumerate(headers):
        lengths = [len(str(header))] + [len(str(r.get(header, ""))) for r in rows]
        width = min(max(max(lengths) + 2, EXCEL_MIN_COLUMN_WIDTH), EXCEL_MAX_COLUMN_WIDTH)
        ws.column_dimensions[get_column_letter(start_col + offset)].width = width


def _row_headers(rows: List[Dict[str, Any]]) -> List[str]:
    headers: Dict[str, None] = {}
    for row in rows:
        for key in row:
            headers[key] = None
    return list(headers)


def _write_table(ws, rows: List[Dict[str, Any]], header_row: int = 1):
    headers = _row_headers(rows)
    for col_idx, header in enumerate(headers, 1):
        _style_header(ws.cell(row=header_row, column=col_idx, value=header))

    for row_idx, row in enumerate(rows, header_row + 1):
        for col_idx, header in enumerate(headers, 1):
            cell = ws.cell(row=row_idx, column=col_idx, value=row.get(header, ""))
            cell.border = CELL_BORDER
            cell.alignment = DATA_ALIGNMENT

    _autofit(ws, headers, rows)
    ws.freeze_panes = f"A{header_row + 1}"
    return headers


def _write_summary(ws, summary: Dict[str, Dict[str, pd.DataFrame]]):
    columns = ["Year"] + MONTH_LABELS + ["Total"]
    row_idx = 1
    for type_idx, (t_name, categories) in enumerate(summary.items()):
        ws.cell(row=row_idx, column=1, value=f"Asset Type: {t_name}").font = SECTION_FONT
        row_idx += 1

        for c_name, table in categories.items():
            ws.cell(row=row_idx, column=1, value=f"Category: {c_name}").font = SECTION_FONT
            row_idx += 1
            for col_idx, header in enumerate(columns, 1):
                _style_header(ws.cell(row=row_idx, column=col_idx, value=header),
                              fill=SUMMARY_FILL, font=Font(bold=True))
            row_idx += 1

            for year, counts in table.iterrows():
                values = [int(year)] + [int(v) for v in counts.tolist()]
                for col_idx, value in enumerate(values, 1):
                    ws.cell(row=row_idx, column=col_idx, value=value).border = CELL_BORDER
                row_idx += 1
            row_idx += 1

        if type_idx < len(summary) - 1:
            row_idx += 1

    for col_idx in range(1, len(columns) + 1):
        ws.column_dimensions[get_column_letter(col_idx)].width = EXCEL_MIN_COLUMN_WIDTH


def _to_buffer(wb: Workbook) -> BytesIO:
    output = BytesIO()
    wb.save(output)
    output.seek(0)
    return output


def build_asset_report_workbook(summary: Dict[str, Dict[str, pd.DataFrame]],
                                sheets: Sequence[Tuple[str, List[Dict[str, Any]]]]) -> BytesIO:
    """
    Summary sheet (when there is anything to summarize) followed by one
    sheet of asset rows per (name, rows) pair.
    """
    wb = Workbook()
    wb.remove(wb.active)

    if summary:
        _write_summary(wb.create_sheet("Asset Summary"), summary)

    for name, rows in sheets:
        ws = wb.create_sheet(sheet_title(name))
        if not rows:
            ws.cell(row=1, column=1, value=EMPTY_SHEET_TEXT)
            continue
        _write_table(ws, rows)

    if not wb.worksheets:
        wb.create_sheet("Assets").cell(row=1, column=1, value=EMPTY_SHEET_TEXT)

    return _to_buffer(wb)


def export_assets_by_manager(api, types: Sequence[dict], manager_id=None,
                             today: date = None) -> Optional[BytesIO]:
    """
    Full asset report: summary of all active assets plus one sheet per manager.
    Returns None when there is no manager to export.
    """
    manager_ids = collect_manager_ids(api, types, manager_id)
    if not manager_ids:
        return None

    summary = summarize_assets(active_assets(api.get_assets()))

    sheets = []
    fetched: Dict[int, List[dict]] = {}
    for m_id in manager_ids:
        if m_id not in fetched:
            fetched[m_id] = api.get_assets(manager=m_id)
        rows = [map_asset_row(a, today) for a in fetched[m_id] if isinstance(a, dict)]
        sheets.append((manager_sheet_name(m_id, types), rows))

    logger.info(f"Asset report built: {len(summary)} type(s), {len(sheets)} manager sheet(s)")
    return build_asset_report_workbook(summary, sheets)


def export_transfer_items_to_excel(items: Iterable[dict]) -> Optional[BytesIO]:
    """Titled single-sheet export of transfer items. None when there are no rows."""
    rows = map_transfer_item_rows(items)
    if not rows:
        return None

    wb = Workbook()
    ws = wb.active
    ws.title = "Transfer Items"

    headers = list(rows[0])
    title = ws.cell(row=1, column=1, value="Asset Transfer Items")
    title.font = Font(bold=True, size=14)
    title.alignment = Alignment(horizontal="center")
    ws.merge_cells(start_row=1, start_column=1, end_row=1, end_column=len(headers))

    _write_table(ws, rows, header_row=2)
    return _to_buffer(wb)


def export_filename(prefix: str, now: datetime = None) -> str:
    """e.g. assets_by_manager_18102026143005.xlsx"""
    now = now or datetime.now()
    return f"{prefix}_{now.strftime('%d%m%Y%H%M%S')}.xlsx"
