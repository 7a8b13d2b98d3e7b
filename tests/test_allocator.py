from datetime import date, datetime

import pytest

from devtrack.core.errors import ConflictError, SequenceOverflowError
from devtrack.modules.devices.allocator import (
    CodeAllocator, format_code, parse_sequence, split_code, year_suffix,
)


def store(*rows):
    """A query_by_prefix stand-in over (kode_id, tanggal_beli) pairs."""
    records = [{"kode_id": k, "tanggal_beli": t} for k, t in rows]
    return lambda prefix: [r for r in records if r["kode_id"].startswith(prefix)]


def broken_store(prefix):
    raise RuntimeError("database is locked")


class TestHelpers:
    @pytest.mark.parametrize("value,expected", [
        (date(2025, 1, 15), "25"),
        (date(2025, 12, 31), "25"),
        ("2005-06-01", "05"),
        (datetime(2024, 2, 29, 13, 45), "24"),
        ("2024-07-01T10:00:00Z", "24"),
    ])
    def test_year_suffix(self, value, expected):
        assert year_suffix(value) == expected

    @pytest.mark.parametrize("value", [None, "", "yesterday", "2024-13-45"])
    def test_year_suffix_unreadable(self, value):
        assert year_suffix(value) is None

    def test_format_pads_sequence(self):
        assert format_code("01", 4, "24") == "INV-01-004-24"
        assert format_code("17", 120, "09") == "INV-17-120-09"

    def test_split_code(self):
        assert split_code("INV-03-012-23") == {"kode_item": "03", "sequence": "012", "year": "23"}
        assert split_code("garbage") == {"kode_item": "", "sequence": "", "year": ""}

    @pytest.mark.parametrize("code,expected", [
        ("INV-01-007-24", 7),
        ("INV-01-7x-24", 7),
        ("INV-01-abc-24", 0),
        ("INV-01--24", 0),
        ("INV-01", 0),
    ])
    def test_parse_sequence(self, code, expected):
        assert parse_sequence(code) == expected


class TestAllocate:
    def test_first_code_in_bucket(self):
        assert CodeAllocator(store()).allocate("01", date(2024, 3, 1)) == "INV-01-001-24"

    def test_next_after_highest_existing(self):
        allocator = CodeAllocator(store(
            ("INV-01-001-24", "2024-01-10"),
            ("INV-01-002-24", "2024-02-11"),
            ("INV-01-003-24", "2024-05-20"),
            ("INV-01-001-23", "2023-08-01"),
            ("INV-02-005-24", "2024-04-04"),
        ))
        assert allocator.allocate("01", "2024-06-01") == "INV-01-004-24"

    def test_gaps_are_not_filled(self):
        allocator = CodeAllocator(store(
            ("INV-05-001-24", "2024-01-01"),
            ("INV-05-009-24", "2024-01-02"),
        ))
        assert allocator.allocate("05", "2024-12-01") == "INV-05-010-24"

    def test_buckets_are_per_purchase_year(self):
        allocator = CodeAllocator(store(
            ("INV-01-001-24", "2024-01-10"),
            ("INV-01-002-24", "2024-02-11"),
        ))
        assert allocator.allocate("01", "2023-11-30") == "INV-01-001-23"

    def test_year_comes_from_stored_purchase_date(self):
        # Code text says 24 but the device was bought in 2023.
        allocator = CodeAllocator(store(("INV-01-008-24", "2023-12-31")))
        assert allocator.allocate("01", "2024-01-01") == "INV-01-001-24"
        assert allocator.allocate("01", "2023-01-01") == "INV-01-009-23"

    def test_rows_with_unreadable_dates_are_skipped(self):
        allocator = CodeAllocator(store(
            ("INV-01-004-24", "not a date"),
            ("INV-01-002-24", "2024-05-05"),
        ))
        assert allocator.allocate("01", "2024-06-01") == "INV-01-003-24"

    def test_malformed_sequences_count_as_zero(self):
        allocator = CodeAllocator(store(("INV-01-xyz-24", "2024-01-10")))
        assert allocator.allocate("01", "2024-06-01") == "INV-01-001-24"

    def test_malformed_sequence_does_not_hide_numeric_neighbours(self):
        allocator = CodeAllocator(store(
            ("INV-01-abc-25", "2025-02-01"),
            ("INV-01-002-25", "2025-03-01"),
        ))
        assert allocator.allocate("01", date(2025, 6, 1)) == "INV-01-003-25"

    def test_continues_after_gap(self):
        allocator = CodeAllocator(store(
            ("INV-01-001-24", "2024-01-15"),
            ("INV-01-003-24", "2024-04-02"),
        ))
        assert allocator.allocate("01", date(2024, 9, 10)) == "INV-01-004-24"

    def test_detailed_result(self):
        result = CodeAllocator(store(("INV-07-002-24", "2024-01-10"))).allocate_detailed("07", "2024-09-09")
        assert result.code == "INV-07-003-24"
        assert result.kode_item == "07"
        assert result.sequence == 3
        assert result.year_suffix == "24"
        assert result.fallback is False
        assert str(result) == result.code

    def test_store_failure_falls_back_to_first_sequence(self, caplog):
        result = CodeAllocator(broken_store).allocate_detailed("07", date(2024, 3, 1))
        assert result.code == "INV-07-001-24"
        assert result.fallback is True
        assert "fell back to sequence 001" in caplog.text
        assert "database is locked" in caplog.text

    def test_overflow_raises(self):
        allocator = CodeAllocator(store(("INV-01-999-24", "2024-01-10")))
        with pytest.raises(SequenceOverflowError) as exc:
            allocator.allocate("01", "2024-02-01")
        assert isinstance(exc.value, ConflictError)
        assert exc.value.status_code == 409
        assert exc.value.payload == {"kode_item": "01", "year": "24"}

    def test_last_sequence_is_still_allocatable(self):
        allocator = CodeAllocator(store(("INV-01-998-24", "2024-01-10")))
        assert allocator.allocate("01", "2024-02-01") == "INV-01-999-24"

    def test_unreadable_purchase_date_raises(self):
        with pytest.raises(ValueError):
            CodeAllocator(store()).allocate("01", "31/12/2024")
