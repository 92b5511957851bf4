import logging

from django.contrib import messages
from django.contrib.auth.decorators import login_required, permission_required
from django.http import Http404, HttpResponse
from django.shortcuts import redirect, render
from django.urls import reverse
from django.views.decorators.http import require_POST

from core.dates import to_display, today_display
from core.services import (
    BackendError,
    customer_type_choices,
    load_list,
    load_object,
    specific_purpose_choices,
)
from core.shortcuts import backend_for, has_code
from core.tables import DataTable

from . import services
from .forms import (
    AllotItemFormSet,
    AllotSampleForm,
    AssignChemistForm,
    ChemistRowFormSet,
    DateRangeForm,
    HodApproveForm,
    HodFilterForm,
    RemnantFormSet,
    SampleFilterForm,
    StartTestForm,
    UploadDocumentsForm,
)
from .pdf import render_report_pdf
from .tables import (
    ACCEPT_SAMPLE_COLUMNS,
    ALLOT_SAMPLE_COLUMNS,
    ASSIGN_CHEMIST_COLUMNS,
    DRAFT_REPORT_COLUMNS,
    HOD_REQUEST_COLUMNS,
    PERFORM_TESTING_COLUMNS,
    TEST_EVENT_COLUMNS,
    accept_sample_actions,
    allot_sample_actions,
    assign_chemist_actions,
    draft_report_actions,
    perform_testing_actions,
)

logger = logging.getLogger(__name__)

PERMISSION = "core.access_action_items"
# backend permission codes that unlock the HOD list filters
CUSTOMER_TYPE_CODE = 389
SPECIFIC_PURPOSE_CODE = 390


def _table_page(request, title, table, filename, filter_form=None, **extra):
    export = table.export_response(filename)
    if export is not None:
        return export
    context = {"title": title, "table": table, "filter_form": filter_form}
    context.update(extra)
    return render(request, "core/table_page.html", context)


def _sample_filters(request, client):
    form = SampleFilterForm(
        request.GET or None,
        ctypes=customer_type_choices(request, client),
        purposes=specific_purpose_choices(request, client),
    )
    params = {
        "ctype": request.GET.get("ctype", ""),
        "specificpurpose": request.GET.get("specificpurpose", ""),
    }
    return form, params


@login_required
@permission_required(PERMISSION, raise_exception=True)
def allot_sample_list(request):
    client = backend_for(request)
    filter_form, params = _sample_filters(request, client)
    rows = load_list(request, client, "/actionitem/get-allot-sample", params=params,
                     failure="Failed to load samples.")
    table = DataTable(request, rows, ALLOT_SAMPLE_COLUMNS, "allot-sample-1", actions=allot_sample_actions)
    return _table_page(request, "Allot Sample", table, "allot_sample", filter_form)


def _allot_data(request, client, pk, department=""):
    params = {"department": department} if department else None
    try:
        data = client.get(f"/actionitem/get-allot-data/{pk}", params=params)
    except BackendError as exc:
        messages.error(request, exc.message or "Failed to load data.")
        return None
    return data if isinstance(data, dict) else {}


@login_required
@permission_required(PERMISSION, raise_exception=True)
def allot_sample_form(request, pk):
    client = backend_for(request)
    department = request.POST.get("department") or request.GET.get("department", "")
    data = _allot_data(request, client, pk, department)
    if data is None:
        return redirect("actionitems:allot_sample_list")

    labs = data.get("labs") or []
    persons = data.get("persons") or []
    items = [item for item in data.get("received_items") or [] if isinstance(item, dict)]
    initial = [{} for _ in items]

    if request.method == "POST":
        form = AllotSampleForm(request.POST, labs=labs, persons=persons)
        formset = AllotItemFormSet(request.POST, initial=initial, prefix="items", items=items)
        if form.is_valid() and formset.is_valid():
            try:
                services.allot_items(
                    client, pk, form.cleaned_data["department"], form.cleaned_data["person"],
                    formset.allotments(),
                )
            except BackendError as exc:
                messages.error(request, exc.message)
            else:
                messages.success(request, "Item Alloted Successfully")
                return redirect("actionitems:allot_sample_list")
    else:
        form = AllotSampleForm(initial={"department": department}, labs=labs, persons=persons)
        formset = AllotItemFormSet(initial=initial, prefix="items", items=items)

    rows = list(zip(items, formset.forms))
    return render(request, "actionitems/allot_sample_form.html", {
        "pk": pk,
        "form": form,
        "formset": formset,
        "rows": rows,
    })


@login_required
@permission_required(PERMISSION, raise_exception=True)
@require_POST
def remove_item(request, pk):
    try:
        services.remove_trf_item(backend_for(request), pk)
    except BackendError as exc:
        messages.error(request, exc.message)
    else:
        messages.success(request, "Item removed from TRF.")
    return redirect("actionitems:hod_review_list")


@login_required
@permission_required(PERMISSION, raise_exception=True)
def accept_sample_list(request):
    client = backend_for(request)
    filter_form, params = _sample_filters(request, client)
    rows = load_list(request, client, "/actionitem/get-accept-sample", params=params,
                     failure="Failed to load samples.")
    table = DataTable(request, rows, ACCEPT_SAMPLE_COLUMNS, "accept-sample-1", actions=accept_sample_actions)
    return _table_page(request, "Accept Sample", table, "accept_sample", filter_form)


@login_required
@permission_required(PERMISSION, raise_exception=True)
@require_POST
def accept_sample(request, pk):
    try:
        services.accept_item(backend_for(request), pk)
    except BackendError as exc:
        messages.error(request, exc.message)
    else:
        messages.success(request, "Item Accepted Successfully")
    return redirect("actionitems:accept_sample_list")


@login_required
@permission_required(PERMISSION, raise_exception=True)
def assign_chemist_list(request):
    client = backend_for(request)
    filter_form, params = _sample_filters(request, client)
    rows = load_list(request, client, "/actionitem/get-assign-chemists", params=params,
                     failure="Failed to load products.")
    table = DataTable(request, rows, ASSIGN_CHEMIST_COLUMNS, "assign-chemist-1", actions=assign_chemist_actions)
    return _table_page(request, "Assign Chemist", table, "assign_chemist", filter_form)


@login_required
@permission_required(PERMISSION, raise_exception=True)
def assign_chemist_form(request, pk):
    client = backend_for(request)
    detail = load_object(request, client, f"/actionitem/get-assign-chemists-details-byid/{pk}")
    if not detail:
        return redirect("actionitems:assign_chemist_list")

    departments = detail.get("departments") or []
    persons = detail.get("person") or []
    rows = [row for row in detail.get("data") or [] if isinstance(row, dict)]
    initial = [{"parameter": row.get("parameter")} for row in rows]

    if request.method == "POST":
        form = AssignChemistForm(request.POST, departments=departments, persons=persons)
        form_valid = form.is_valid()
        formset = ChemistRowFormSet(
            request.POST, initial=initial, prefix="rows", rows=rows, defaults=form.row_defaults()
        )
        if form_valid and formset.is_valid():
            try:
                services.assign_chemists(client, pk, form.cleaned_data, [f.cleaned_data for f in formset])
            except BackendError as exc:
                messages.error(request, exc.message)
            else:
                messages.success(request, "Chemist Assigned Successfully")
                return redirect("actionitems:assign_chemist_list")
    else:
        form = AssignChemistForm(departments=departments, persons=persons)
        formset = ChemistRowFormSet(initial=initial, prefix="rows", rows=rows)

    grade, size = detail.get("grades") or "", detail.get("size") or ""
    return render(request, "actionitems/assign_chemist_form.html", {
        "pk": pk,
        "form": form,
        "formset": formset,
        "rows": list(zip(rows, formset.forms)),
        "grade_size": f"{grade} / {size}" if grade and size else (grade or size or "-"),
        "lrn": detail.get("lrn") or "-",
        "brand": detail.get("brand") or "-",
    })


@login_required
@permission_required(PERMISSION, raise_exception=True)
def perform_testing_list(request):
    client = backend_for(request)
    rows = load_list(request, client, "/actionitem/get-perform-testing", failure="Failed to load tests.")
    table = DataTable(request, rows, PERFORM_TESTING_COLUMNS, "perform-testing-1", actions=perform_testing_actions)
    return _table_page(request, "Perform Testing", table, "perform_testing")


@login_required
@permission_required(PERMISSION, raise_exception=True)
def perform_testing_detail(request, pk):
    client = backend_for(request)
    events = load_list(request, client, "/actionitem/get-perform-testing-byid", params={"id": pk},
                       failure="Failed to load test events.")
    for event in events:
        event.setdefault("tid", pk)
    table = DataTable(
        request, events, TEST_EVENT_COLUMNS, "perform-test-detail-1",
        actions=services.test_event_actions, row_key="testeventdata_id",
    )
    return _table_page(request, f"Perform Test #{pk}", table, f"perform_test_{pk}",
                       back_url=reverse("actionitems:perform_testing_list"))


def _back_to_events(request):
    tid = request.GET.get("tid") or request.POST.get("tid")
    if tid and tid.isdigit():
        return redirect("actionitems:perform_testing_detail", pk=int(tid))
    return redirect("actionitems:perform_testing_list")


@login_required
@permission_required(PERMISSION, raise_exception=True)
@require_POST
def start_test(request, teid):
    try:
        services.start_test(backend_for(request), teid, today_display())
    except BackendError as exc:
        messages.error(request, exc.message)
    else:
        messages.success(request, "Test started successfully")
    return _back_to_events(request)


@login_required
@permission_required(PERMISSION, raise_exception=True)
def start_test_on_date(request, teid):
    if request.method == "POST":
        form = StartTestForm(request.POST)
        if form.is_valid():
            enddate = to_display(form.cleaned_data["start_date"])
            try:
                services.start_test(backend_for(request), teid, enddate)
            except BackendError as exc:
                messages.error(request, exc.message)
            else:
                messages.success(request, "Test started successfully")
                return _back_to_events(request)
    else:
        form = StartTestForm()
    return render(request, "actionitems/simple_form.html", {
        "title": "Select Start Date",
        "form": form,
        "submit_label": "Start Test",
        "tid": request.GET.get("tid", ""),
    })


@login_required
@permission_required(PERMISSION, raise_exception=True)
def upload_documents(request, tid, teid):
    trf = request.GET.get("trf") or request.POST.get("trf", "")
    if request.method == "POST":
        form = UploadDocumentsForm(request.POST, request.FILES)
        if form.is_valid():
            try:
                services.upload_test_documents(
                    backend_for(request),
                    form.cleaned_data["name"],
                    trf,
                    tid,
                    teid,
                    form.cleaned_data["files"],
                )
            except BackendError as exc:
                messages.error(request, exc.message)
            else:
                messages.success(request, "Documents uploaded successfully")
                return redirect("actionitems:perform_testing_detail", pk=tid)
    else:
        form = UploadDocumentsForm()
    return render(request, "actionitems/simple_form.html", {
        "title": "Upload Document",
        "form": form,
        "submit_label": "Upload",
        "multipart": True,
        "trf": trf,
        "tid": tid,
    })


@login_required
@permission_required(PERMISSION, raise_exception=True)
def hod_review_list(request):
    client = backend_for(request)
    by_type = has_code(request, CUSTOMER_TYPE_CODE)
    by_purpose = has_code(request, SPECIFIC_PURPOSE_CODE)
    filter_form = HodFilterForm(
        request.GET or None,
        ctypes=customer_type_choices(request, client) if by_type else (),
        purposes=specific_purpose_choices(request, client) if by_purpose else (),
        labs=load_list(request, client, "/actionitem/get-labs-by-department-wise", failure="Failed to load labs."),
    )
    if not by_type:
        del filter_form.fields["ctype"]
    if not by_purpose:
        del filter_form.fields["specificpurpose"]
    status = request.GET.get("status") or "Pending"
    if status not in ("Pending", "Approved"):
        status = "Pending"
    params = {
        "ctype": request.GET.get("ctype", "") if by_type else "",
        "specificpurpose": request.GET.get("specificpurpose", "") if by_purpose else "",
        "department": request.GET.get("department", ""),
        "status": status,
    }
    rows = load_list(request, client, "/actionitem/get-hod-request", params=params,
                     failure="Failed to load HOD requests.")
    table = DataTable(request, rows, HOD_REQUEST_COLUMNS, "review-by-hod-1", actions=services.hod_actions)
    return _table_page(request, "Review By HOD", table, "review_by_hod", filter_form)


def _pdf_response(report, filename, letterhead):
    response = HttpResponse(render_report_pdf(report, letterhead=letterhead), content_type="application/pdf")
    response["Content-Disposition"] = f"inline; filename={filename}.pdf"
    return response


@login_required
@permission_required(PERMISSION, raise_exception=True)
def test_report(request, tid):
    """Report page the HOD and QA review from; ``hid`` is the HOD request id."""
    client = backend_for(request)
    hid = request.GET.get("hid") or request.POST.get("hid", "")
    params = {"tid": tid}
    if hid:
        params["hid"] = hid
    raw = load_object(request, client, "/actionitem/view-test-report", params=params,
                      failure="Failed to load report.")
    if not raw:
        return redirect("actionitems:hod_review_list")

    report = services.normalize_report(raw)
    flags = services.test_report_flags(raw, hid)

    if request.GET.get("format") == "pdf":
        return _pdf_response(report, f"test_report_{tid}", request.GET.get("letterhead") != "0")

    allotted = [item for item in raw.get("allotted_items") or [] if isinstance(item, dict)]
    initial = [{"qid": item.get("qid"), "department": item.get("department")} for item in allotted]

    if request.method == "POST" and flags["show_hod_form"]:
        form = HodApproveForm(request.POST)
        formset = RemnantFormSet(request.POST, initial=initial, prefix="items")
        if form.is_valid() and formset.is_valid():
            try:
                services.submit_qa_approve(
                    client, hid, form.cleaned_data["hodremark"], [f.cleaned_data for f in formset]
                )
            except BackendError as exc:
                messages.error(request, exc.message)
            else:
                messages.success(request, "Approved & Submitted to QA")
                return redirect("actionitems:hod_review_list")
    else:
        form = HodApproveForm()
        formset = RemnantFormSet(initial=initial, prefix="items")

    return render(request, "actionitems/test_report.html", {
        "tid": tid,
        "hid": hid,
        "report": report,
        "flags": flags,
        "form": form,
        "formset": formset,
        "allotted": list(zip(allotted, formset.forms)),
    })


@login_required
@permission_required(PERMISSION, raise_exception=True)
@require_POST
def approve_ulr(request, tid):
    hid = request.POST.get("hid", "")
    if not hid:
        raise Http404("Missing HOD request id")
    try:
        services.approve_ulr(backend_for(request), hid)
    except BackendError as exc:
        messages.error(request, exc.message)
        return redirect(f"{reverse('actionitems:test_report', args=[tid])}?hid={hid}")
    messages.success(request, "Approved & Submitted for ULR")
    return redirect("actionitems:hod_review_list")


@login_required
@permission_required(PERMISSION, raise_exception=True)
@require_POST
def request_reset(request, tid, teid):
    try:
        services.request_reset(backend_for(request), teid)
    except BackendError as exc:
        messages.error(request, exc.message)
    else:
        messages.success(request, "Re-test requested")
    url = reverse("actionitems:test_report", args=[tid])
    hid = request.POST.get("hid")
    return redirect(f"{url}?hid={hid}" if hid else url)


@login_required
@permission_required(PERMISSION, raise_exception=True)
def draft_report_list(request):
    client = backend_for(request)
    filter_form = DateRangeForm(request.GET or None)
    params = {}
    if filter_form.is_valid():
        for key in ("startdate", "enddate"):
            if filter_form.cleaned_data.get(key):
                params[key] = filter_form.cleaned_data[key].isoformat()
    rows = load_list(request, client, "/actionitem/get-draft-report", params=params,
                     failure="Failed to load draft reports.")
    table = DataTable(request, rows, DRAFT_REPORT_COLUMNS, "draft-report-1", actions=draft_report_actions)
    return _table_page(request, "View Draft Report", table, "draft_reports", filter_form)


def _draft_url(tid, hod_id):
    url = reverse("actionitems:draft_report_detail", args=[tid])
    return f"{url}?hod_id={hod_id}" if hod_id else url


@login_required
@permission_required(PERMISSION, raise_exception=True)
def draft_report_detail(request, tid):
    client = backend_for(request)
    hod_id = request.GET.get("hod_id", "")
    raw = load_object(request, client, "/actionitem/view-draft-report",
                      params={"tid": tid, "hod_id": hod_id}, failure="Failed to load report.")
    if not raw:
        return redirect("actionitems:draft_report_list")

    report = services.normalize_report(raw)
    if request.GET.get("format") == "pdf":
        return _pdf_response(report, f"draft_report_{tid}", request.GET.get("letterhead") != "0")

    return render(request, "actionitems/draft_report.html", {
        "tid": tid,
        "hod_id": hod_id,
        "report": report,
        "flags": services.draft_report_flags(raw),
    })


@login_required
@permission_required(PERMISSION, raise_exception=True)
@require_POST
def request_retest(request, tid, teid):
    try:
        services.request_retest(backend_for(request), teid)
    except BackendError as exc:
        messages.error(request, exc.message)
    else:
        messages.success(request, "Re-test requested")
    return redirect(_draft_url(tid, request.POST.get("hod_id", "")))


@login_required
@permission_required(PERMISSION, raise_exception=True)
@require_POST
def submit_hod_request(request, tid):
    partial = request.POST.get("partial") == "1"
    try:
        services.submit_hod_request(backend_for(request), tid)
    except BackendError as exc:
        messages.error(request, exc.message)
        return redirect(_draft_url(tid, request.POST.get("hod_id", "")))
    messages.success(request, f"Submitted for {'Partial ' if partial else ''}HOD Review")
    return redirect("actionitems:draft_report_list")
