import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required, permission_required
from django.shortcuts import redirect, render
from django.urls import reverse
from django.views.decorators.http import require_POST

from core.dates import today_display
from core.services import (
    BackendError,
    customer_type_choices,
    delete_each,
    load_list,
    load_object,
    specific_purpose_choices,
)
from core.shortcuts import backend_for, posted_ids, safe_next
from core.tables import DataTable

from . import services
from .forms import FeedbackForm, TrfFilterForm
from .tables import TRF_COLUMNS

logger = logging.getLogger(__name__)

PERMISSION = "core.access_testing"


@login_required
@permission_required(PERMISSION, raise_exception=True)
def trf_list(request):
    client = backend_for(request)
    ctypes = customer_type_choices(request, client)
    purposes = specific_purpose_choices(request, client)
    filter_form = TrfFilterForm(request.GET or None, ctypes=ctypes, purposes=purposes)

    rows = load_list(request, client, "/testing/get-testing-trflist", params=filter_form.params(),
                     failure="Failed to load TRF entries.")
    rows = services.decorate_trfs(rows, dict(ctypes), dict(purposes))
    table = DataTable(request, rows, TRF_COLUMNS, "trf-entries", actions=services.trf_actions, selectable=True)
    export = table.export_response("trf_entries")
    if export is not None:
        return export
    return render(request, "core/table_page.html", {
        "title": "TRF Entries",
        "table": table,
        "filter_form": filter_form,
        "bulk_url": reverse("testing:trf_bulk_delete"),
    })


def _delete(request, ids):
    client = backend_for(request)
    done, failures = delete_each(ids, lambda pk: services.delete_trf(client, pk))
    if done:
        messages.success(request, f"{len(done)} TRF entr{'y' if len(done) == 1 else 'ies'} deleted successfully")
    for pk, message in failures:
        messages.error(request, f"Failed to delete TRF {pk}: {message}")


@login_required
@permission_required(PERMISSION, raise_exception=True)
@require_POST
def trf_delete(request, pk):
    _delete(request, [pk])
    return redirect(safe_next(request, reverse("testing:trf_list")))


@login_required
@permission_required(PERMISSION, raise_exception=True)
@require_POST
def trf_bulk_delete(request):
    next_url = safe_next(request, reverse("testing:trf_list"))
    ids = posted_ids(request)
    if ids is None:
        messages.error(request, "Invalid selection.")
    elif not ids:
        messages.error(request, "Select at least one TRF entry.")
    else:
        _delete(request, ids)
    return redirect(next_url)


@login_required
@permission_required(PERMISSION, raise_exception=True)
def feedback(request, pk):
    client = backend_for(request)
    customer = load_object(
        request, client, "/testing/get-feedback-data",
        params={"type": services.FEEDBACK_TYPE, "id": pk},
        failure="Failed to fetch feedback data.",
    )
    contact = customer.get("contactperson") if isinstance(customer.get("contactperson"), dict) else {}

    if request.method == "POST":
        form = FeedbackForm(request.POST)
        if form.is_valid():
            try:
                services.send_feedback(client, form.cleaned_data, customer, pk)
            except BackendError as exc:
                messages.error(request, exc.message)
            else:
                messages.success(request, "Feedback submitted successfully")
                return redirect("testing:trf_list")
    else:
        form = FeedbackForm(initial={
            "contactpersonname": contact.get("name") or "",
            "contactpersondepartment": contact.get("department") or "",
            "contactpersondesignation": contact.get("designation") or "",
        })

    return render(request, "testing/feedback_form.html", {
        "form": form,
        "customer": customer,
        "pk": pk,
        "today": today_display(),
        "back_url": reverse("testing:trf_list"),
    })
