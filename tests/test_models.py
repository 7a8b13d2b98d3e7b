from datetime import date

import pytest

from devtrack.core.errors import ConflictError
from devtrack.modules.devices import models
from devtrack.modules.devices.allocator import CodeAllocator


class TestWarranty:
    @pytest.mark.parametrize("start,months,expected", [
        (date(2024, 1, 31), 1, date(2024, 2, 29)),
        (date(2023, 1, 31), 1, date(2023, 2, 28)),
        (date(2024, 11, 15), 3, date(2025, 2, 15)),
        (date(2024, 5, 5), 24, date(2026, 5, 5)),
    ])
    def test_add_months(self, start, months, expected):
        assert models.add_months(start, months) == expected

    def test_warranty_end(self):
        assert models.warranty_end("2024-03-10", 12) == "2025-03-10"
        assert models.warranty_end("2024-03-10", 0) is None
        assert models.warranty_end("", 12) is None

    def test_is_warranty_expired(self):
        today = date(2025, 1, 1)
        assert models.is_warranty_expired({"garansi_sampai": "2024-12-31"}, today)
        assert not models.is_warranty_expired({"garansi_sampai": "2025-01-01"}, today)
        assert not models.is_warranty_expired({"garansi_sampai": None}, today)


class TestStore:
    def test_kode_id_is_unique(self, make_device):
        make_device("INV-01-001-24")
        with pytest.raises(ConflictError):
            make_device("INV-01-001-24")

    def test_query_by_prefix(self, make_device):
        make_device("INV-01-001-24", "2024-01-01")
        make_device("INV-01-001-23", "2023-01-01")
        make_device("INV-11-001-24", "2024-01-01")
        rows = models.query_by_prefix("INV-01-")
        assert sorted(r["kode_id"] for r in rows) == ["INV-01-001-23", "INV-01-001-24"]
        assert set(rows[0]) == {"kode_id", "tanggal_beli"}

    def test_newest_first(self, make_device):
        first = make_device("INV-01-001-24")
        second = make_device("INV-01-002-24")
        assert [d["id"] for d in models.list_devices()] == [second, first]

    def test_update_is_partial(self, make_device):
        device_id = make_device("INV-01-001-24", keterangan="baru")
        assert models.update_device(device_id, {"lokasi": "Gudang", "kode_id": "INV-99-999-99"})
        device = models.get_device(device_id)
        assert device["lokasi"] == "Gudang"
        assert device["keterangan"] == "baru"
        assert device["kode_id"] == "INV-01-001-24"

    def test_update_without_fields(self, make_device):
        device_id = make_device("INV-01-001-24")
        assert models.update_device(device_id, {}) is False

    def test_delete(self, make_device):
        device_id = make_device("INV-01-001-24")
        assert models.delete_device(device_id)
        assert models.get_device(device_id) is None
        assert not models.delete_device(device_id)

    def test_deleting_highest_code_frees_its_sequence(self, make_device):
        make_device("INV-01-001-24", "2024-01-01")
        top = make_device("INV-01-002-24", "2024-01-02")
        models.delete_device(top)
        assert CodeAllocator().allocate("01", "2024-09-01") == "INV-01-002-24"


class TestFilterAndSearch:
    @pytest.fixture
    def devices(self, make_device):
        make_device("INV-01-001-24", merk="Dell", kondisi="Baik", devisi="IT")
        make_device("INV-07-001-24", jenis_barang="Laptop", merk="Lenovo", type="ThinkPad T14",
                    kondisi="Rusak", devisi="FIN", akun_terhubung="finance@corp")
        make_device("INV-09-001-23", "2023-05-05", jenis_barang="Printer", merk="Epson",
                    type="L3110 100%", kondisi="Dalam Perbaikan", devisi="IT", status="Tidak Aktif")

    def test_all_filters_are_ignored(self, devices):
        assert len(models.filter_devices(q="", kondisi="all", devisi="all", jenis_barang="all", status="all")) == 3

    def test_filter_by_field(self, devices):
        assert [d["kode_id"] for d in models.filter_devices(kondisi="Rusak")] == ["INV-07-001-24"]
        assert len(models.filter_devices(devisi="IT")) == 2
        assert len(models.filter_devices(devisi="IT", status="Tidak Aktif")) == 1

    def test_search_is_case_insensitive(self, devices):
        assert [d["merk"] for d in models.search_devices("LENOVO")] == ["Lenovo"]
        assert [d["merk"] for d in models.search_devices("finance@")] == ["Lenovo"]
        assert [d["kode_id"] for d in models.search_devices("inv-09")] == ["INV-09-001-23"]

    def test_search_treats_wildcards_literally(self, devices):
        assert [d["merk"] for d in models.search_devices("100%")] == ["Epson"]
        assert models.search_devices("_") == []

    def test_search_combined_with_filter(self, devices):
        assert models.filter_devices(q="dell", kondisi="Rusak") == []

    def test_unique_values(self, devices):
        assert models.unique_values("devisi") == ["FIN", "IT"]
        assert models.unique_values("jenis_barang") == ["Laptop", "Monitor", "Printer"]
        with pytest.raises(ValueError):
            models.unique_values("password_hash")

    def test_summarize(self, devices):
        summary = models.summarize(models.list_devices())
        assert summary == {"total": 3, "Baik": 1, "Rusak": 1, "Dalam Perbaikan": 1, "Tidak Terpakai": 0}


def test_search_folds_non_ascii_case(make_device):
    make_device("INV-01-001-24", merk="ÉLITE")
    make_device("INV-01-002-24", lokasi="Straße 5")
    assert [d["kode_id"] for d in models.search_devices("élite")] == ["INV-01-001-24"]
    assert [d["kode_id"] for d in models.search_devices("STRASSE")] == ["INV-01-002-24"]
