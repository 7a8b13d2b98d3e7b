# devtrack/modules/reports/views.py
from __future__ import annotations
import io, csv
from datetime import datetime
from flask import Blueprint, abort, send_file

from devtrack.modules.auth.security import login_required
from devtrack.modules.devices import models
from devtrack.modules.devices.views import list_filters, filtered_devices
from .pdf import render_device_detail_pdf, render_devices_pdf

bp = Blueprint("reports", __name__, url_prefix="/reports")

CSV_COLUMNS = [
    ("Kode ID", "kode_id"),
    ("Jenis Barang", "jenis_barang"),
    ("Merk", "merk"),
    ("Type", "type"),
    ("SN/Reg/Model", "sn_reg_model"),
    ("Tanggal Beli", "tanggal_beli"),
    ("Garansi (bulan)", "garansi"),
    ("Garansi Sampai", "garansi_sampai"),
    ("Lokasi", "lokasi"),
    ("Divisi", "devisi"),
    ("Sub Divisi", "sub_devisi"),
    ("Status", "status"),
    ("Kondisi", "kondisi"),
    ("Akun Terhubung", "akun_terhubung"),
    ("Keterangan", "keterangan"),
]


def _stamp() -> str:
    return datetime.now().strftime("%Y%m%d")


@bp.route("/devices.csv")
@login_required
def export_csv():
    rows = filtered_devices(list_filters())
    out = io.StringIO(); w = csv.writer(out)
    w.writerow([label for label, _ in CSV_COLUMNS])
    for r in rows:
        w.writerow(["" if r[field] is None else r[field] for _, field in CSV_COLUMNS])
    mem = io.BytesIO(out.getvalue().encode("utf-8-sig")); mem.seek(0)
    return send_file(mem, mimetype="text/csv", as_attachment=True,
                     download_name=f"inventaris_perangkat_{_stamp()}.csv")


@bp.route("/devices.pdf")
@login_required
def export_pdf():
    rows = filtered_devices(list_filters())
    pdf = render_devices_pdf(rows, models.summarize(rows))
    return send_file(io.BytesIO(pdf), mimetype="application/pdf", as_attachment=True,
                     download_name=f"inventaris_perangkat_{_stamp()}.pdf")


@bp.route("/devices/<int:device_id>.pdf")
@login_required
def export_device_pdf(device_id: int):
    device = models.get_device(device_id)
    if not device:
        abort(404)
    pdf = render_device_detail_pdf(device)
    return send_file(io.BytesIO(pdf), mimetype="application/pdf", as_attachment=True,
                     download_name=f"detail_{device['kode_id']}.pdf")
