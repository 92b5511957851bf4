import logging
from decimal import Decimal, InvalidOperation, ROUND_HALF_UP

from core.services import BackendError, ensure_success, unwrap_list

logger = logging.getLogger(__name__)

POINT_FIELDS = ("parameter", "specification", "setpoint", "uuc", "master", "error", "remark")


def price_list_path(instrument_id):
    return f"/calibrationoperations/get-calibrationprice-byid/{instrument_id}"


def points_path(price_id, matrix_id):
    return f"/calibrationoperations/get-calibpoint-byid_withmatrixid/{price_id}/{matrix_id}"


def delete_price(client, pk):
    return ensure_success(
        client.delete(f"/calibrationoperations/delete-Calibration-price/{pk}"),
        "Failed to delete calibration price.",
    )


def delete_point(client, pk):
    return ensure_success(
        client.delete(f"/calibrationoperations/delete-Calibration-point/{pk}"),
        "Failed to delete calibration point.",
    )


def compute_error(uuc, master):
    """``uuc - master`` to two decimals, or None when either side is not a number."""
    try:
        value = Decimal(str(uuc).strip()) - Decimal(str(master).strip())
    except (InvalidOperation, TypeError, ValueError):
        return None
    if not value.is_finite():
        return None
    return str(value.quantize(Decimal("0.01"), rounding=ROUND_HALF_UP))


def _first(client, path):
    """First row of a list endpoint, or {} when the call fails or is empty."""
    try:
        rows = unwrap_list(client.get(path))
    except BackendError as exc:
        logger.info("Lookup %s failed: %s", path, exc.message)
        return {}
    return rows[0] if rows and isinstance(rows[0], dict) else {}


def resolve_point_ids(client, price_id, matrix_id):
    """Find the instrument and price-matrix ids a calibration point write needs.

    Tries the existing points first, then the instrument behind the price,
    then the price matrix itself. ``instid`` stays None when nothing knows it.
    """
    ids = {"instid": None, "matrixid": int(matrix_id), "pricematrixid": None}

    first = _first(client, points_path(price_id, matrix_id))
    if first:
        logger.debug("Point ids from existing points: %s", first)
        ids["instid"] = first.get("instid") or None
        ids["pricematrixid"] = first.get("matrixid") or None
        if ids["instid"] and ids["pricematrixid"]:
            return ids

    if not ids["instid"]:
        instrument = _first(client, f"/calibrationoperations/get-instrument-bypriceid/{price_id}")
        ids["instid"] = instrument.get("instid") or None
        logger.debug("Instrument lookup for price %s gave instid=%s", price_id, ids["instid"])

    if not ids["pricematrixid"]:
        matrix = _first(client, f"/calibrationoperations/get-pricematrix-byid/{matrix_id}")
        ids["pricematrixid"] = matrix.get("pricematrixid") or int(matrix_id)
        logger.debug("Price matrix for %s resolved to %s", matrix_id, ids["pricematrixid"])

    if not ids["instid"]:
        logger.warning("No instrument id for price %s / matrix %s", price_id, matrix_id)
    return ids


def ids_complete(ids):
    return bool(ids.get("instid")) and bool(ids.get("pricematrixid"))


def _text(value):
    return "" if value is None else str(value)


def update_point(client, pk, ids, point):
    payload = {"id": int(pk)}
    payload.update({field: _text(point.get(field)) for field in POINT_FIELDS})
    payload.update({
        "instid": int(ids["instid"]),
        "matrixid": int(ids["matrixid"]),
        "pricematrixid": int(ids["pricematrixid"]),
    })
    logger.info("Updating calibration point %s", pk)
    return ensure_success(
        client.post("/calibrationoperations/update-calibpoint", payload),
        "Update failed",
    )


def add_points(client, ids, points):
    payload = {
        "instid": int(ids["instid"]),
        "matrixid": int(ids["matrixid"]),
        "pricematrixid": int(ids["pricematrixid"]),
    }
    for field in POINT_FIELDS:
        payload[field] = [_text(point.get(field)) for point in points]
    logger.info("Adding %s calibration point(s) to matrix %s", len(points), ids["matrixid"])
    return ensure_success(
        client.post("/calibrationoperations/add-new-calibpoint", payload),
        "Failed to add calibration points",
    )
