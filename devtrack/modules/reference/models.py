# devtrack/modules/reference/models.py
"""
Reference lists used to validate device records: item codes (kode item)
and divisions (divisi). Both live in the shared devtrack database and are
seeded with the default lists the first time the tables are created.
"""

import logging
from typing import List, Optional

from devtrack.core.database import get_db_connection, safe_execute_script
from devtrack.core.validation import sanitize_string, validate_divisi_name, validate_kode

logger = logging.getLogger(__name__)

DEFAULT_KODE_ITEMS = [
    ("01", "Monitor"),
    ("02", "PC"),
    ("03", "UPS"),
    ("04", "Keyboard"),
    ("05", "Mouse"),
    ("06", "TV"),
    ("07", "Laptop"),
    ("08", "Smartphone"),
    ("09", "Printer"),
    ("10", "MousePad"),
    ("11", "Shooting Kit"),
    ("12", "Mini PC"),
    ("13", "Router"),
    ("14", "WifiUSB"),
    ("15", "Headset"),
    ("16", "Telpon rumah"),
    ("17", "Stavolt"),
]

DEFAULT_DIVISI = [
    "EC", "EM", "ADM", "FIN", "BA", "PRG", "OPS", "IT", "EDITOR",
    "SOSMED", "PROGRAMMER", "DESIGN", "HR", "PRIMEHUB",
]


def ensure_schema(seed: bool = True):
    safe_execute_script("""
    CREATE TABLE IF NOT EXISTS kode_items(
      kode TEXT PRIMARY KEY,
      nama TEXT NOT NULL
    );

    CREATE TABLE IF NOT EXISTS divisi(
      nama TEXT PRIMARY KEY COLLATE NOCASE
    );
    """)
    if seed:
        _seed_defaults()


def _seed_defaults():
    with get_db_connection(commit=True) as con:
        if con.execute("SELECT COUNT(*) FROM kode_items").fetchone()[0] == 0:
            con.executemany("INSERT INTO kode_items(kode, nama) VALUES (?, ?)", DEFAULT_KODE_ITEMS)
            logger.info(f"Seeded {len(DEFAULT_KODE_ITEMS)} default kode items")
        if con.execute("SELECT COUNT(*) FROM divisi").fetchone()[0] == 0:
            con.executemany("INSERT INTO divisi(nama) VALUES (?)", [(d,) for d in DEFAULT_DIVISI])
            logger.info(f"Seeded {len(DEFAULT_DIVISI)} default divisi")


class ReferenceStore:
    """Item-code and division lists, handed to whatever needs to validate against them."""

    def __init__(self, path: Optional[str] = None):
        self.path = path

    def _db(self, commit: bool = False):
        return get_db_connection(self.path, commit=commit)

    # ---- kode items ----

    def list_kode_items(self) -> List[dict]:
        with self._db() as con:
            rows = con.execute("SELECT kode, nama FROM kode_items ORDER BY kode").fetchall()
        return [dict(r) for r in rows]

    def get_kode_item(self, kode: str) -> Optional[dict]:
        with self._db() as con:
            row = con.execute("SELECT kode, nama FROM kode_items WHERE kode=?", (kode,)).fetchone()
        return dict(row) if row else None

    def add_kode_item(self, kode: str, nama: str) -> bool:
        """Insert a new item code. Returns False if the code already exists."""
        kode = validate_kode(kode)
        nama = sanitize_string(nama, max_length=60)
        with self._db(commit=True) as con:
            cur = con.execute("INSERT OR IGNORE INTO kode_items(kode, nama) VALUES (?, ?)", (kode, nama))
            added = cur.rowcount == 1
        if added:
            logger.info(f"Added kode item {kode} ({nama})")
        return added

    def delete_kode_item(self, kode: str) -> bool:
        with self._db(commit=True) as con:
            cur = con.execute("DELETE FROM kode_items WHERE kode=?", (kode,))
            return cur.rowcount > 0

    # ---- divisi ----

    def list_divisi(self) -> List[str]:
        with self._db() as con:
            rows = con.execute("SELECT nama FROM divisi ORDER BY nama").fetchall()
        return [r["nama"] for r in rows]

    def has_divisi(self, nama: str) -> bool:
        with self._db() as con:
            return con.execute("SELECT 1 FROM divisi WHERE nama=?", (nama,)).fetchone() is not None

    def add_divisi(self, nama: str) -> bool:
        """Insert a division (stored upper-case). False on a case-insensitive duplicate."""
        nama = validate_divisi_name(nama)
        with self._db(commit=True) as con:
            cur = con.execute("INSERT OR IGNORE INTO divisi(nama) VALUES (?)", (nama,))
            added = cur.rowcount == 1
        if added:
            logger.info(f"Added divisi {nama}")
        return added

    def delete_divisi(self, nama: str) -> bool:
        with self._db(commit=True) as con:
            cur = con.execute("DELETE FROM divisi WHERE nama=?", (nama,))
            return cur.rowcount > 0
