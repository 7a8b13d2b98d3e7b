# devtrack/modules/reports/pdf.py
import io
from datetime import datetime
from typing import Dict, Iterable, List

from reportlab.lib.pagesizes import A4, landscape
from reportlab.lib.units import mm
from reportlab.pdfbase import pdfmetrics
from reportlab.pdfgen import canvas

from devtrack.modules.devices.models import KONDISI_CHOICES

TITLE = "Laporan Inventaris Perangkat Kantor"
SUBTITLE = "Device Monitoring System"

# (header, field, column width in mm)
COLUMNS = [
    ("Kode ID", "kode_id", 30),
    ("Jenis Barang", "jenis_barang", 28),
    ("Merk", "merk", 26),
    ("Type", "type", 34),
    ("SN/Reg/Model", "sn_reg_model", 34),
    ("Tgl Beli", "tanggal_beli", 22),
    ("Lokasi", "lokasi", 32),
    ("Divisi", "devisi", 22),
    ("Status", "status", 20),
    ("Kondisi", "kondisi", 21),
]

FONT = "Helvetica"
FONT_BOLD = "Helvetica-Bold"
ROW_H = 6 * mm


def _fit(text: str, font: str, size: float, max_width: float) -> str:
    """Cut text with an ellipsis so it fits the column."""
    text = str(text or "")
    if pdfmetrics.stringWidth(text, font, size) <= max_width:
        return text
    while text and pdfmetrics.stringWidth(text + "…", font, size) > max_width:
        text = text[:-1]
    return text + "…"


def summary_line(summary: Dict[str, int]) -> str:
    parts = [f"Total Perangkat: {summary['total']}"]
    parts += [f"{k}: {summary.get(k, 0)}" for k in KONDISI_CHOICES]
    return " | ".join(parts)


def render_devices_pdf(devices: Iterable[dict], summary: Dict[str, int], exported_at: datetime = None) -> bytes:
    """A4 landscape table of devices, headed by the title and condition summary."""
    devices: List[dict] = list(devices)
    exported_at = exported_at or datetime.now()

    buf = io.BytesIO()
    page_w, page_h = landscape(A4)
    c = canvas.Canvas(buf, pagesize=(page_w, page_h))
    c.setTitle(TITLE)

    margin = 12 * mm
    page_no = 1

    def header(y):
        c.setFont(FONT_BOLD, 8)
        c.setFillColorRGB(41 / 255, 128 / 255, 185 / 255)
        c.rect(margin, y - ROW_H + 1.5 * mm, page_w - 2 * margin, ROW_H, stroke=0, fill=1)
        c.setFillColorRGB(1, 1, 1)
        x = margin + 1.5 * mm
        for label, _, width in COLUMNS:
            c.drawString(x, y - 2.5 * mm, label)
            x += width * mm
        c.setFillColorRGB(0, 0, 0)
        return y - ROW_H

    def footer():
        c.setFont(FONT, 7)
        c.drawRightString(page_w - margin, 7 * mm, f"Halaman {page_no}")

    y = page_h - 15 * mm
    c.setFont(FONT_BOLD, 16)
    c.drawString(margin, y, TITLE)
    y -= 7 * mm
    c.setFont(FONT, 10)
    c.drawString(margin, y, SUBTITLE)
    y -= 5 * mm
    c.setFont(FONT, 8)
    c.drawString(margin, y, f"Tanggal Export: {exported_at.strftime('%d-%m-%Y %H:%M')}")
    y -= 5 * mm
    c.drawString(margin, y, summary_line(summary))
    y -= 6 * mm
    y = header(y)

    if not devices:
        c.setFont(FONT, 9)
        c.drawString(margin + 1.5 * mm, y - 2.5 * mm, "Tidak ada data perangkat.")

    for i, d in enumerate(devices):
        if y - ROW_H < 14 * mm:
            footer()
            c.showPage()
            page_no += 1
            y = header(page_h - 15 * mm)
        if i % 2:
            c.setFillColorRGB(245 / 255, 245 / 255, 245 / 255)
            c.rect(margin, y - ROW_H + 1.5 * mm, page_w - 2 * margin, ROW_H, stroke=0, fill=1)
            c.setFillColorRGB(0, 0, 0)
        c.setFont(FONT, 8)
        x = margin + 1.5 * mm
        for _, field, width in COLUMNS:
            c.drawString(x, y - 2.5 * mm, _fit(d.get(field), FONT, 8, width * mm - 2 * mm))
            x += width * mm
        y -= ROW_H

    footer()
    c.save()
    return buf.getvalue()


DETAIL_TITLE = "Detail Perangkat"

DETAIL_FIELDS = [
    ("Kode ID", "kode_id"),
    ("Jenis Barang", "jenis_barang"),
    ("Merk", "merk"),
    ("Type", "type"),
    ("SN/Reg/Model", "sn_reg_model"),
    ("Kondisi", "kondisi"),
    ("Divisi", "devisi"),
    ("Lokasi", "lokasi"),
    ("Spesifikasi", "spesifikasi"),
    ("Tanggal Beli", "tanggal_beli"),
    ("Garansi Sampai", "garansi_sampai"),
    ("Keterangan", "keterangan"),
    ("Tanggal Dibuat", "created_at"),
    ("Terakhir Diupdate", "updated_at"),
]


def render_device_detail_pdf(device: dict, exported_at: datetime = None) -> bytes:
    """One A4 portrait page: label/value table for a single device."""
    exported_at = exported_at or datetime.now()

    buf = io.BytesIO()
    page_w, page_h = A4
    c = canvas.Canvas(buf, pagesize=A4)
    c.setTitle(f"{DETAIL_TITLE} {device.get('kode_id', '')}")

    margin = 14 * mm
    label_w = 45 * mm
    value_w = page_w - 2 * margin - label_w

    y = page_h - 15 * mm
    c.setFont(FONT_BOLD, 16)
    c.drawString(margin, y, DETAIL_TITLE)
    y -= 7 * mm
    c.setFont(FONT, 10)
    c.drawString(margin, y, f"Tanggal Export: {exported_at.strftime('%d-%m-%Y')}")
    y -= 8 * mm

    for i, (label, field) in enumerate(DETAIL_FIELDS):
        if i % 2 == 0:
            c.setFillColorRGB(245 / 255, 245 / 255, 245 / 255)
            c.rect(margin, y - ROW_H + 1.5 * mm, page_w - 2 * margin, ROW_H, stroke=0, fill=1)
            c.setFillColorRGB(0, 0, 0)
        c.setFont(FONT_BOLD, 9)
        c.drawString(margin + 1.5 * mm, y - 2.5 * mm, label)
        c.setFont(FONT, 9)
        value = device.get(field)
        c.drawString(margin + label_w, y - 2.5 * mm,
                     _fit("-" if value in (None, "") else value, FONT, 9, value_w - 2 * mm))
        y -= ROW_H

    c.save()
    return buf.getvalue()
