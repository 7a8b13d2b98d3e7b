# devtrack/modules/devices/models.py
import calendar
import logging
from datetime import date, datetime, timezone
from typing import Any, Dict, Iterable, List, Optional

from devtrack.core.database import get_db_connection, safe_execute_script
from devtrack.core.validation import parse_date, sanitize_sql_like

logger = logging.getLogger(__name__)

KONDISI_CHOICES = ["Baik", "Rusak", "Dalam Perbaikan", "Tidak Terpakai"]
STATUS_CHOICES = ["Aktif", "Tidak Aktif"]

# Columns a caller may write; kode_id is only set on insert.
EDITABLE_FIELDS = [
    "kode_item", "jenis_barang", "tanggal_beli", "garansi", "garansi_sampai",
    "lokasi", "devisi", "sub_devisi", "merk", "type", "sn_reg_model",
    "spesifikasi", "gambar", "status", "kondisi", "akun_terhubung", "keterangan",
]

SEARCH_FIELDS = [
    "kode_id", "jenis_barang", "merk", "type", "sn_reg_model", "sub_devisi",
    "devisi", "spesifikasi", "lokasi", "akun_terhubung",
]

FILTER_FIELDS = ["kondisi", "devisi", "jenis_barang", "status"]


def ensure_schema():
    safe_execute_script("""
    CREATE TABLE IF NOT EXISTS devices(
      id INTEGER PRIMARY KEY,
      kode_id TEXT NOT NULL,
      kode_item TEXT NOT NULL,
      jenis_barang TEXT NOT NULL,
      tanggal_beli TEXT NOT NULL,
      garansi INTEGER NOT NULL DEFAULT 0,
      garansi_sampai TEXT,
      lokasi TEXT NOT NULL,
      devisi TEXT NOT NULL,
      sub_devisi TEXT,
      merk TEXT NOT NULL,
      type TEXT NOT NULL,
      sn_reg_model TEXT,
      spesifikasi TEXT,
      gambar TEXT,
      status TEXT NOT NULL DEFAULT 'Aktif',
      kondisi TEXT NOT NULL DEFAULT 'Baik',
      akun_terhubung TEXT,
      keterangan TEXT,
      created_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now')),
      updated_at TEXT NOT NULL DEFAULT (strftime('%Y-%m-%dT%H:%M:%SZ','now'))
    );

    CREATE UNIQUE INDEX IF NOT EXISTS ux_devices_kode_id ON devices(kode_id);
    CREATE INDEX IF NOT EXISTS idx_devices_kondisi ON devices(kondisi);
    CREATE INDEX IF NOT EXISTS idx_devices_devisi ON devices(devisi);
    """)


def _now() -> str:
    return datetime.now(timezone.utc).strftime('%Y-%m-%dT%H:%M:%SZ')


def _to_dict(row) -> Optional[Dict[str, Any]]:
    return dict(row) if row else None


# ---- warranty helpers ---------------------------------------------------

def add_months(d: date, months: int) -> date:
    """Shift a date by whole months, clamping the day to the target month's end."""
    month_index = d.month - 1 + months
    year = d.year + month_index // 12
    month = month_index % 12 + 1
    day = min(d.day, calendar.monthrange(year, month)[1])
    return date(year, month, day)


def warranty_end(tanggal_beli: Any, garansi: int) -> Optional[str]:
    bought = parse_date(tanggal_beli)
    if bought is None or not garansi:
        return None
    return add_months(bought, int(garansi)).isoformat()


def is_warranty_expired(device: Dict[str, Any], today: Optional[date] = None) -> bool:
    end = parse_date(device.get("garansi_sampai"))
    if end is None:
        return False
    return end < (today or date.today())


# ---- record store -------------------------------------------------------

def query_by_prefix(prefix: str) -> List[Dict[str, Any]]:
    """Devices whose kode_id starts with prefix, as {kode_id, tanggal_beli} rows."""
    with get_db_connection() as con:
        rows = con.execute(
            "SELECT kode_id, tanggal_beli FROM devices WHERE kode_id LIKE ? ESCAPE '\\'",
            (sanitize_sql_like(prefix) + "%",)
        ).fetchall()
    return [dict(r) for r in rows]


def insert_device(data: Dict[str, Any]) -> int:
    """Insert a device row (kode_id included) and return its id."""
    cols = ["kode_id"] + [f for f in EDITABLE_FIELDS if f in data]
    params = [data["kode_id"]] + [data[f] for f in cols[1:]]
    with get_db_connection(commit=True) as con:
        cur = con.execute(
            f"INSERT INTO devices({', '.join(cols)}) VALUES ({', '.join('?' * len(cols))})",
            params
        )
        return cur.lastrowid


def update_device(device_id: int, data: Dict[str, Any]) -> bool:
    """
    Partial update: only editable fields present in `data` are written.
    The device code is never changed here.
    """
    sets = []
    params = []
    for key in EDITABLE_FIELDS:
        if key in data:
            sets.append(f"{key}=?")
            params.append(data[key])

    if not sets:
        return False

    sets.append("updated_at=?")
    params.extend([_now(), device_id])

    with get_db_connection(commit=True) as con:
        cur = con.execute(f"UPDATE devices SET {', '.join(sets)} WHERE id=?", params)
        return cur.rowcount > 0


def delete_device(device_id: int) -> bool:
    with get_db_connection(commit=True) as con:
        cur = con.execute("DELETE FROM devices WHERE id=?", (device_id,))
        return cur.rowcount > 0


def get_device(device_id: int) -> Optional[Dict[str, Any]]:
    with get_db_connection() as con:
        return _to_dict(con.execute("SELECT * FROM devices WHERE id=?", (device_id,)).fetchone())


def get_device_by_code(kode_id: str) -> Optional[Dict[str, Any]]:
    with get_db_connection() as con:
        return _to_dict(con.execute("SELECT * FROM devices WHERE kode_id=?", (kode_id,)).fetchone())


def list_devices() -> List[Dict[str, Any]]:
    return filter_devices()


def filter_devices(q: str = "", **filters) -> List[Dict[str, Any]]:
    """
    Devices newest first, narrowed by a free-text search and equality filters.
    A filter that is empty or "all" is ignored.
    """
    sql = "SELECT * FROM devices WHERE 1=1"
    params: list = []

    for field in FILTER_FIELDS:
        value = (filters.get(field) or "").strip()
        if value and value != "all":
            sql += f" AND {field} = ?"
            params.append(value)

    q = (q or "").strip().casefold()
    if q:
        like = f"%{sanitize_sql_like(q)}%"
        sql += " AND (" + " OR ".join(
            f"py_casefold(COALESCE({f}, '')) LIKE ? ESCAPE '\\'" for f in SEARCH_FIELDS
        ) + ")"
        params.extend([like] * len(SEARCH_FIELDS))

    sql += " ORDER BY created_at DESC, id DESC"

    with get_db_connection() as con:
        rows = con.execute(sql, params).fetchall()
    return [dict(r) for r in rows]


def search_devices(q: str) -> List[Dict[str, Any]]:
    return filter_devices(q=q)


def unique_values(field: str) -> List[str]:
    """Sorted distinct non-empty values of a filterable column."""
    if field not in FILTER_FIELDS:
        raise ValueError(f"Not a filterable field: {field}")
    with get_db_connection() as con:
        rows = con.execute(
            f"SELECT DISTINCT {field} AS v FROM devices WHERE {field} IS NOT NULL AND {field} != '' ORDER BY v"
        ).fetchall()
    return [r["v"] for r in rows]


def summarize(devices: Iterable[Dict[str, Any]]) -> Dict[str, int]:
    """Device count in total and per kondisi."""
    summary = {"total": 0}
    summary.update({k: 0 for k in KONDISI_CHOICES})
    for d in devices:
        summary["total"] += 1
        if d.get("kondisi") in summary:
            summary[d["kondisi"]] += 1
    return summary
