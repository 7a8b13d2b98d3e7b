import csv
import io
from datetime import datetime

from devtrack.modules.devices import models
from devtrack.modules.reports.pdf import render_device_detail_pdf, render_devices_pdf, summary_line
from devtrack.modules.reports.views import CSV_COLUMNS


def test_exports_require_login(client):
    assert client.get("/reports/devices.csv").status_code == 302
    assert client.get("/reports/devices.pdf").status_code == 302


def test_csv_export(admin_client, make_device):
    make_device("INV-01-001-24", kondisi="Baik")
    make_device("INV-01-002-24", kondisi="Rusak", keterangan="layar retak")
    resp = admin_client.get("/reports/devices.csv")
    assert resp.status_code == 200
    assert resp.mimetype == "text/csv"
    assert "inventaris_perangkat_" in resp.headers["Content-Disposition"]
    assert resp.data.startswith(b"\xef\xbb\xbf")

    rows = list(csv.reader(io.StringIO(resp.data.decode("utf-8-sig"))))
    assert rows[0] == [label for label, _ in CSV_COLUMNS]
    assert [r[0] for r in rows[1:]] == ["INV-01-002-24", "INV-01-001-24"]
    assert rows[1][-1] == "layar retak"


def test_csv_export_follows_filters(admin_client, make_device):
    make_device("INV-01-001-24", kondisi="Baik")
    make_device("INV-01-002-24", kondisi="Rusak")
    resp = admin_client.get("/reports/devices.csv?kondisi=Rusak")
    rows = list(csv.reader(io.StringIO(resp.data.decode("utf-8-sig"))))
    assert [r[0] for r in rows[1:]] == ["INV-01-002-24"]


def test_pdf_export(admin_client, make_device):
    make_device("INV-01-001-24")
    resp = admin_client.get("/reports/devices.pdf")
    assert resp.status_code == 200
    assert resp.mimetype == "application/pdf"
    assert resp.data.startswith(b"%PDF")


def test_render_pdf_paginates():
    devices = [
        {"kode_id": f"INV-01-{i:03d}-24", "jenis_barang": "Monitor", "merk": "Dell",
         "type": "A very long model name that will not fit in its column at all",
         "tanggal_beli": "2024-01-01", "lokasi": "Lantai 1", "devisi": "IT",
         "status": "Aktif", "kondisi": "Baik"}
        for i in range(1, 81)
    ]
    one_page = render_devices_pdf(devices[:1], models.summarize(devices[:1]), datetime(2024, 5, 1))
    many = render_devices_pdf(devices, models.summarize(devices), datetime(2024, 5, 1))
    assert many.startswith(b"%PDF")
    assert len(many) > len(one_page)


def test_render_pdf_empty():
    assert render_devices_pdf([], models.summarize([])).startswith(b"%PDF")


def test_summary_line():
    line = summary_line({"total": 3, "Baik": 2, "Rusak": 1})
    assert line == "Total Perangkat: 3 | Baik: 2 | Rusak: 1 | Dalam Perbaikan: 0 | Tidak Terpakai: 0"


def test_device_detail_pdf(admin_client, make_device):
    device_id = make_device("INV-01-001-24", spesifikasi="27 inch, IPS")
    resp = admin_client.get(f"/reports/devices/{device_id}.pdf")
    assert resp.status_code == 200
    assert resp.mimetype == "application/pdf"
    assert "detail_INV-01-001-24.pdf" in resp.headers["Content-Disposition"]
    assert resp.data.startswith(b"%PDF")


def test_device_detail_pdf_unknown_device(admin_client):
    assert admin_client.get("/reports/devices/999.pdf").status_code == 404


def test_detail_page_links_pdf(admin_client, make_device):
    device_id = make_device("INV-01-001-24")
    assert f"/reports/devices/{device_id}.pdf".encode() in admin_client.get(f"/devices/{device_id}").data


def test_render_device_detail_pdf_handles_missing_values():
    pdf = render_device_detail_pdf({"kode_id": "INV-01-001-24", "merk": None})
    assert pdf.startswith(b"%PDF")
