import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required, permission_required
from django.shortcuts import redirect, render
from django.urls import reverse
from django.views.decorators.http import require_POST

from core.services import BackendError, delete_each, load_list, load_object
from core.shortcuts import backend_for, posted_ids
from core.tables import DataTable

from . import services
from .forms import CalibPointForm, CalibPointFormSet, InstrumentLookupForm
from .tables import POINT_COLUMNS, PRICE_COLUMNS, point_actions, price_actions

logger = logging.getLogger(__name__)

PERMISSION = "core.access_calibration"
MISSING_IDS = "Missing required IDs. Please try again."


def _report_deletes(request, done, failures, noun):
    if done:
        messages.success(request, f"Deleted {len(done)} {noun}(s).")
    for pk, message in failures:
        messages.error(request, f"Delete failed for {pk}: {message}")


@login_required
@permission_required(PERMISSION, raise_exception=True)
def price_lookup(request):
    form = InstrumentLookupForm(request.GET or None)
    if form.is_valid():
        return redirect("calibration:price_list", instrument_id=form.cleaned_data["instrument_id"])
    return render(request, "calibration/price_lookup.html", {"form": form})


@login_required
@permission_required(PERMISSION, raise_exception=True)
def price_list(request, instrument_id):
    client = backend_for(request)
    rows = load_list(request, client, services.price_list_path(instrument_id),
                     failure="Failed to fetch price data.")
    table = DataTable(
        request, rows, PRICE_COLUMNS, f"calibration-price-{instrument_id}",
        actions=price_actions(instrument_id), selectable=True,
    )
    export = table.export_response(f"calibration_prices_{instrument_id}")
    if export is not None:
        return export
    return render(request, "core/table_page.html", {
        "title": f"Calibration Prices: Instrument {instrument_id}",
        "table": table,
        "column_filters": True,
        "bulk_url": reverse("calibration:price_bulk_delete", args=[instrument_id]),
        "back_url": reverse("calibration:price_lookup"),
    })


@login_required
@permission_required(PERMISSION, raise_exception=True)
@require_POST
def price_delete(request, instrument_id, pk):
    client = backend_for(request)
    done, failures = delete_each([pk], lambda price_id: services.delete_price(client, price_id))
    _report_deletes(request, done, failures, "calibration price")
    return redirect("calibration:price_list", instrument_id=instrument_id)


@login_required
@permission_required(PERMISSION, raise_exception=True)
@require_POST
def price_bulk_delete(request, instrument_id):
    ids = posted_ids(request)
    if ids is None:
        messages.error(request, "Invalid selection.")
        return redirect("calibration:price_list", instrument_id=instrument_id)
    if not ids:
        messages.error(request, "Select at least one row.")
        return redirect("calibration:price_list", instrument_id=instrument_id)
    client = backend_for(request)
    done, failures = delete_each(ids, lambda price_id: services.delete_price(client, price_id))
    _report_deletes(request, done, failures, "calibration price")
    return redirect("calibration:price_list", instrument_id=instrument_id)


@login_required
@permission_required(PERMISSION, raise_exception=True)
def points_list(request, price_id, matrix_id):
    client = backend_for(request)
    rows = load_list(request, client, services.points_path(price_id, matrix_id),
                     failure="Failed to fetch calibration points data.")
    table = DataTable(
        request, rows, POINT_COLUMNS, f"calibration-points-{price_id}-{matrix_id}",
        actions=point_actions(price_id, matrix_id),
    )
    export = table.export_response(f"calibration_points_{price_id}_{matrix_id}")
    if export is not None:
        return export
    return render(request, "core/table_page.html", {
        "title": f"Calibration Points: Price {price_id} / Matrix {matrix_id}",
        "table": table,
        "header_links": [
            ("Add Calibration Point", reverse("calibration:point_add", args=[price_id, matrix_id])),
        ],
        "back_url": reverse("calibration:price_lookup"),
    })


@login_required
@permission_required(PERMISSION, raise_exception=True)
def point_add(request, price_id, matrix_id):
    client = backend_for(request)
    ids = services.resolve_point_ids(client, price_id, matrix_id)

    if request.method == "POST":
        formset = CalibPointFormSet(request.POST, prefix="points")
        if "add_row" in request.POST:
            formset = CalibPointFormSet(initial=formset.posted_rows() + [{}], prefix="points")
        elif formset.is_valid():
            points = [f.cleaned_data for f in formset if not f.cleaned_data.get("DELETE")]
            if not services.ids_complete(ids):
                messages.error(request, MISSING_IDS)
            else:
                try:
                    services.add_points(client, ids, points)
                except BackendError as exc:
                    messages.error(request, exc.message)
                else:
                    messages.success(request, "Calibration points added successfully!")
                    return redirect("calibration:points_list", price_id=price_id, matrix_id=matrix_id)
    else:
        formset = CalibPointFormSet(initial=[{}], prefix="points")

    return render(request, "calibration/points_add.html", {
        "price_id": price_id,
        "matrix_id": matrix_id,
        "ids": ids,
        "formset": formset,
    })


@login_required
@permission_required(PERMISSION, raise_exception=True)
def point_edit(request, price_id, matrix_id, pk):
    client = backend_for(request)
    ids = services.resolve_point_ids(client, price_id, matrix_id)
    point = load_object(request, client, f"/calibrationoperations/get-calibpoint-byid/{pk}",
                        failure="Failed to fetch calibration point data.")
    if not point:
        return redirect("calibration:points_list", price_id=price_id, matrix_id=matrix_id)

    if request.method == "POST":
        form = CalibPointForm(request.POST)
        if form.is_valid():
            if not services.ids_complete(ids):
                messages.error(request, MISSING_IDS)
            else:
                try:
                    services.update_point(client, pk, ids, form.cleaned_data)
                except BackendError as exc:
                    messages.error(request, exc.message)
                else:
                    messages.success(request, "Calibration point updated successfully!")
                    return redirect("calibration:points_list", price_id=price_id, matrix_id=matrix_id)
    else:
        form = CalibPointForm(initial={field: point.get(field) or "" for field in services.POINT_FIELDS})

    return render(request, "calibration/point_form.html", {
        "price_id": price_id,
        "matrix_id": matrix_id,
        "pk": pk,
        "ids": ids,
        "form": form,
    })


@login_required
@permission_required(PERMISSION, raise_exception=True)
@require_POST
def point_delete(request, price_id, matrix_id, pk):
    client = backend_for(request)
    done, failures = delete_each([pk], lambda point_id: services.delete_point(client, point_id))
    _report_deletes(request, done, failures, "calibration point")
    return redirect("calibration:points_list", price_id=price_id, matrix_id=matrix_id)
