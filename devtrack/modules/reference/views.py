# devtrack/modules/reference/views.py
"""
Managers for the kode item and divisi reference lists.
"""

from flask import Blueprint, render_template, request, redirect, url_for, flash

from devtrack.core.errors import ValidationError
from devtrack.modules.auth.models import record_audit
from devtrack.modules.auth.security import login_required, require_admin, current_user
from .models import ReferenceStore

bp = Blueprint("reference", __name__, url_prefix="/reference")


# ---------- KODE ITEM ----------

@bp.route("/kode-items", methods=["GET"])
@login_required
def kode_items():
    return render_template("reference/kode_items.html", active="kode_items",
                           items=ReferenceStore().list_kode_items())


@bp.route("/kode-items", methods=["POST"])
@require_admin
def add_kode_item():
    kode = (request.form.get("kode") or "").strip()
    nama = (request.form.get("nama") or "").strip()
    try:
        added = ReferenceStore().add_kode_item(kode, nama)
    except ValidationError as e:
        flash(e.message, "danger")
        return redirect(url_for("reference.kode_items"))

    if not added:
        flash(f"Kode item {kode} already exists", "warning")
    else:
        record_audit(current_user(), "add_kode_item", "reference", f"{kode} {nama}")
        flash(f"Kode item {kode} added", "success")
    return redirect(url_for("reference.kode_items"))


@bp.route("/kode-items/<kode>/delete", methods=["POST"])
@require_admin
def delete_kode_item(kode: str):
    if ReferenceStore().delete_kode_item(kode):
        record_audit(current_user(), "delete_kode_item", "reference", kode)
        flash(f"Kode item {kode} deleted", "success")
    else:
        flash(f"Kode item {kode} not found", "warning")
    return redirect(url_for("reference.kode_items"))


# ---------- DIVISI ----------

@bp.route("/divisi", methods=["GET"])
@login_required
def divisi():
    return render_template("reference/divisi.html", active="divisi",
                           divisi_list=ReferenceStore().list_divisi())


@bp.route("/divisi", methods=["POST"])
@require_admin
def add_divisi():
    nama = (request.form.get("nama") or "").strip()
    try:
        added = ReferenceStore().add_divisi(nama)
    except ValidationError as e:
        flash(e.message, "danger")
        return redirect(url_for("reference.divisi"))

    if not added:
        flash(f"Divisi {nama.upper()} already exists", "warning")
    else:
        record_audit(current_user(), "add_divisi", "reference", nama.upper())
        flash(f"Divisi {nama.upper()} added", "success")
    return redirect(url_for("reference.divisi"))


@bp.route("/divisi/<path:nama>/delete", methods=["POST"])
@require_admin
def delete_divisi(nama: str):
    if ReferenceStore().delete_divisi(nama):
        record_audit(current_user(), "delete_divisi", "reference", nama)
        flash(f"Divisi {nama} deleted", "success")
    else:
        flash(f"Divisi {nama} not found", "warning")
    return redirect(url_for("reference.divisi"))
