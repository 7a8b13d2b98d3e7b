# devtrack/modules/devices/views.py
import logging
from flask import render_template, request, redirect, url_for, flash, jsonify, abort

from devtrack.core.errors import ValidationError, NotFoundError
from devtrack.core.validation import validate_date
from devtrack.modules.auth.models import record_audit
from devtrack.modules.auth.security import login_required, require_admin, current_user
from devtrack.modules.reference.models import ReferenceStore

from . import bp
from . import models
from .allocator import CodeAllocator
from .service import clean_device_form, create_device, edit_device

logger = logging.getLogger(__name__)


def list_filters() -> dict:
    """Search text and filter selections from the query string."""
    f = {k: (request.args.get(k) or "").strip() for k in ["q"] + models.FILTER_FIELDS}
    for k in models.FILTER_FIELDS:
        f[k] = f[k] or "all"
    return f


def filtered_devices(f: dict):
    return models.filter_devices(q=f["q"], **{k: f[k] for k in models.FILTER_FIELDS})


def _form_context(reference: ReferenceStore, **extra):
    return dict(
        kode_items=reference.list_kode_items(),
        divisi_list=reference.list_divisi(),
        kondisi_choices=models.KONDISI_CHOICES,
        status_choices=models.STATUS_CHOICES,
        **extra
    )


# ---------- Routes ----------

@bp.route("/")
@login_required
def index():
    """Device table with search, filters and condition summary."""
    f = list_filters()
    rows = filtered_devices(f)
    return render_template(
        "devices/list.html",
        active="devices",
        rows=rows,
        summary=models.summarize(models.list_devices()),
        divisi_options=models.unique_values("devisi"),
        jenis_options=models.unique_values("jenis_barang"),
        kondisi_choices=models.KONDISI_CHOICES,
        status_choices=models.STATUS_CHOICES,
        **f
    )


@bp.route("/new", methods=["GET", "POST"])
@login_required
def create():
    reference = ReferenceStore()
    form = request.form if request.method == "POST" else {}

    if request.method == "POST":
        try:
            data = clean_device_form(request.form, reference)
        except ValidationError as e:
            flash(e.message, "danger")
            return render_template(
                "devices/form.html",
                **_form_context(reference, device=None, form=form, errors=e.payload.get("fields", {}))
            ), 400

        device = create_device(data)
        cu = current_user()
        record_audit(cu, "create_device", "devices", f"Device #{device['id']} {device['kode_id']}")
        if device["allocation_fallback"]:
            flash(f"Device {device['kode_id']} saved, but the code was assigned while the "
                  f"device list was unavailable. Please verify it.", "warning")
        else:
            flash(f"Device {device['kode_id']} created.", "success")
        return redirect(url_for("devices.detail", device_id=device["id"]))

    return render_template("devices/form.html", **_form_context(reference, device=None, form=form, errors={}))


@bp.route("/<int:device_id>")
@login_required
def detail(device_id: int):
    device = models.get_device(device_id)
    if not device:
        abort(404)
    return render_template(
        "devices/detail.html",
        device=device,
        warranty_expired=models.is_warranty_expired(device),
    )


@bp.route("/<int:device_id>/edit", methods=["GET", "POST"])
@login_required
def edit(device_id: int):
    reference = ReferenceStore()
    device = models.get_device(device_id)
    if not device:
        abort(404)

    if request.method == "POST":
        try:
            data = clean_device_form(request.form, reference)
        except ValidationError as e:
            flash(e.message, "danger")
            return render_template(
                "devices/form.html",
                **_form_context(reference, device=device, form=request.form, errors=e.payload.get("fields", {}))
            ), 400

        device = edit_device(device_id, data)
        record_audit(current_user(), "update_device", "devices", f"Updated device #{device_id} {device['kode_id']}")
        flash(f"Device {device['kode_id']} updated.", "success")
        return redirect(url_for("devices.detail", device_id=device_id))

    return render_template("devices/form.html", **_form_context(reference, device=device, form=device, errors={}))


@bp.route("/<int:device_id>/delete", methods=["POST"])
@require_admin
def delete(device_id: int):
    """Hard delete; the code's sequence number may be reissued if it was the highest."""
    device = models.get_device(device_id)
    if not device or not models.delete_device(device_id):
        flash("Device not found", "warning")
        return redirect(url_for("devices.index"))

    record_audit(current_user(), "delete_device", "devices", f"Deleted device #{device_id} {device['kode_id']}")
    flash(f"Device {device['kode_id']} deleted.", "success")
    return redirect(url_for("devices.index"))


@bp.route("/api/next-code")
@login_required
def next_code():
    """Preview the code the next device of this kode item and date would get."""
    kode_item = (request.args.get("kode_item") or "").strip()
    tanggal_beli = (request.args.get("tanggal_beli") or "").strip()

    validate_date(tanggal_beli)
    if not ReferenceStore().get_kode_item(kode_item):
        raise NotFoundError(f"Unknown kode item: {kode_item}")

    result = CodeAllocator().allocate_detailed(kode_item, tanggal_beli)
    return jsonify({
        "success": True,
        "kode_id": result.code,
        "sequence": result.sequence,
        "year": result.year_suffix,
        "fallback": result.fallback,
    })
