# devtrack/modules/devices/service.py
"""
Device workflows that span validation, code allocation and storage.
"""

import logging
from typing import Any, Dict, Mapping, Optional

from devtrack.core.errors import ConflictError, NotFoundError, ValidationError
from devtrack.core.validation import (
    sanitize_string, validate_choice, validate_date, validate_fields, validate_integer,
)
from devtrack.modules.reference.models import ReferenceStore

from . import models
from .allocator import AllocationResult, CodeAllocator

logger = logging.getLogger(__name__)

MAX_ALLOCATION_ATTEMPTS = 5


def _optional_text(max_length: int):
    return lambda v: sanitize_string(v, max_length=max_length, allow_empty=True)


def _required_text(max_length: int):
    return lambda v: sanitize_string(v, max_length=max_length)


DEVICE_SCHEMA = {
    "tanggal_beli": lambda v: validate_date((v or "").strip()),
    "garansi": lambda v: validate_integer(v, min_value=0, max_value=120, allow_none=True) or 0,
    "garansi_sampai": lambda v: validate_date((v or "").strip(), allow_empty=True),
    "lokasi": _required_text(120),
    "devisi": _required_text(40),
    "sub_devisi": _optional_text(60),
    "merk": _required_text(80),
    "type": _required_text(120),
    "sn_reg_model": _optional_text(120),
    "spesifikasi": _optional_text(2000),
    "gambar": _optional_text(500),
    "status": lambda v: validate_choice(v or "Aktif", models.STATUS_CHOICES),
    "kondisi": lambda v: validate_choice(v or "Baik", models.KONDISI_CHOICES),
    "akun_terhubung": _optional_text(120),
    "keterangan": _optional_text(2000),
}


def clean_device_form(form: Mapping[str, Any], reference: ReferenceStore) -> Dict[str, Any]:
    """
    Validate a submitted device form against the reference lists.

    Returns the cleaned field dict (kode_item, jenis_barang and the editable
    columns). Raises ValidationError with per-field messages in the payload.
    """
    errors = {}
    data: Dict[str, Any] = {}

    try:
        data.update(validate_fields(form, DEVICE_SCHEMA))
    except ValidationError as e:
        errors.update(e.payload.get("fields", {}))

    kode_item = (form.get("kode_item") or "").strip()
    item = reference.get_kode_item(kode_item) if kode_item else None
    if not item:
        errors["kode_item"] = "Unknown kode item"
    else:
        data["kode_item"] = item["kode"]
        data["jenis_barang"] = item["nama"]

    devisi = (form.get("devisi") or "").strip()
    if devisi and not reference.has_divisi(devisi):
        errors["devisi"] = "Unknown divisi"

    if errors:
        raise ValidationError(
            "; ".join(f"{k}: {v}" for k, v in errors.items()),
            payload={"fields": errors},
        )

    data["devisi"] = data["devisi"].upper()
    if not data.get("garansi_sampai"):
        data["garansi_sampai"] = models.warranty_end(data["tanggal_beli"], data["garansi"])
    return data


def create_device(data: Dict[str, Any], allocator: Optional[CodeAllocator] = None) -> Dict[str, Any]:
    """
    Allocate a code for already-cleaned device data and insert it.

    kode_id is unique in storage; when a concurrent insert took the candidate
    code the allocation is recomputed and the insert retried.
    """
    allocator = allocator or CodeAllocator()
    last_error = None

    for attempt in range(1, MAX_ALLOCATION_ATTEMPTS + 1):
        result: AllocationResult = allocator.allocate_detailed(data["kode_item"], data["tanggal_beli"])
        try:
            device_id = models.insert_device(dict(data, kode_id=result.code))
        except ConflictError as e:
            last_error = e
            logger.warning(f"Code {result.code} already taken (attempt {attempt}/{MAX_ALLOCATION_ATTEMPTS})")
            continue

        if result.fallback:
            logger.warning(f"Device #{device_id} stored with fallback code {result.code}")
        logger.info(f"Created device #{device_id} with code {result.code}")
        device = models.get_device(device_id)
        device["allocation_fallback"] = result.fallback
        return device

    raise ConflictError(
        f"Could not allocate a free code for kode item {data['kode_item']} after "
        f"{MAX_ALLOCATION_ATTEMPTS} attempts",
        payload={"last_error": last_error.message if last_error else None},
    )


def edit_device(device_id: int, data: Dict[str, Any]) -> Dict[str, Any]:
    """Apply cleaned form data to an existing device; its code stays as allocated."""
    data = {k: v for k, v in data.items() if k != "kode_id"}
    if not models.update_device(device_id, data):
        raise NotFoundError(f"Device #{device_id} not found")
    return models.get_device(device_id)
