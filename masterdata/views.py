import logging
from urllib.parse import urlsplit

from django.contrib import messages
from django.contrib.auth.decorators import login_required, permission_required
from django.http import QueryDict
from django.shortcuts import redirect, render
from django.urls import reverse
from django.utils import timezone
from django.views.decorators.http import require_POST

from core.dates import parse_iso, to_display
from core.services import BackendError, delete_each, load_list, load_object
from core.shortcuts import backend_for, employee_id_for, posted_ids, safe_next
from core.tables import DataTable

from . import services
from .forms import (
    ApproveDocumentForm,
    DocumentFilterForm,
    MasterDocumentForm,
    QuestionFormSet,
    TrainingModuleForm,
)
from .tables import DOCUMENT_COLUMNS, TRAINING_COLUMNS, training_actions

logger = logging.getLogger(__name__)

PERMISSION = "core.access_master_data"
MODULE_FIELDS = ("modulename", "frequency", "repeatcycle", "time", "video")


def _document_rows(request, client, query):
    filter_form = DocumentFilterForm(query or None)
    rows = load_list(request, client, "/master/view-document-module-list", params=filter_form.params(),
                     failure="Failed to fetch documents.")
    return filter_form, rows


@login_required
@permission_required(PERMISSION, raise_exception=True)
def document_list(request):
    client = backend_for(request)
    filter_form, rows = _document_rows(request, client, request.GET)
    employee_id = employee_id_for(request)
    table = DataTable(
        request, rows, DOCUMENT_COLUMNS, "master-document-1",
        actions=lambda row: services.document_actions(row, employee_id),
        selectable=True,
    )
    export = table.export_response("master_documents")
    if export is not None:
        return export
    return render(request, "core/table_page.html", {
        "title": "Master Documents",
        "table": table,
        "filter_form": filter_form,
        "header_links": [
            ("Add Document", reverse("masterdata:document_add")),
            ("Training Modules", reverse("masterdata:training_list")),
        ],
        "bulk_url": reverse("masterdata:document_bulk_delete"),
    })


@login_required
@permission_required(PERMISSION, raise_exception=True)
@require_POST
def document_delete(request, pk):
    try:
        services.delete_document(backend_for(request), pk)
    except BackendError as exc:
        messages.error(request, exc.message)
    else:
        messages.success(request, "Document deleted successfully")
    return redirect(safe_next(request, reverse("masterdata:document_list")))


@login_required
@permission_required(PERMISSION, raise_exception=True)
@require_POST
def document_bulk_delete(request):
    next_url = safe_next(request, reverse("masterdata:document_list"))
    ids = posted_ids(request)
    if ids is None:
        messages.error(request, "Invalid selection.")
        return redirect(next_url)
    if not ids:
        messages.error(request, "Select at least one document.")
        return redirect(next_url)

    client = backend_for(request)
    # re-read the list the user was looking at to check each row's status
    _, rows = _document_rows(request, client, QueryDict(urlsplit(next_url).query))
    by_id = {str(row.get("id")): row for row in rows}
    if not all(pk in by_id and services.can_delete(by_id[pk]) for pk in ids):
        messages.error(
            request,
            "Some selected documents cannot be deleted. Only documents in Saved, "
            "Pending Review, or Pending Approval status can be deleted.",
        )
        return redirect(next_url)

    done, failures = delete_each(ids, lambda pk: services.delete_document(client, pk))
    if done:
        messages.success(request, f"{len(done)} document(s) deleted successfully")
    for pk, message in failures:
        messages.error(request, f"Failed to delete document {pk}: {message}")
    return redirect(next_url)


@login_required
@permission_required(PERMISSION, raise_exception=True)
@require_POST
def document_review(request, pk):
    try:
        services.review_document(backend_for(request), pk)
    except BackendError as exc:
        messages.error(request, exc.message)
    else:
        messages.success(request, "Document reviewed successfully")
    return redirect(f"{reverse('masterdata:document_list')}?type=pending")


@login_required
@permission_required(PERMISSION, raise_exception=True)
def document_approve(request, pk):
    if request.method == "POST":
        form = ApproveDocumentForm(request.POST)
        if form.is_valid():
            try:
                services.approve_document(backend_for(request), pk, form.cleaned_data["effectiveDate"].isoformat())
            except BackendError as exc:
                messages.error(request, exc.message)
            else:
                messages.success(request, "Document approved successfully")
                return redirect(f"{reverse('masterdata:document_list')}?type=pending")
    else:
        form = ApproveDocumentForm(initial={"effectiveDate": timezone.localdate()})
    return render(request, "masterdata/approve_document.html", {"form": form, "pk": pk})


def _document_choices(request, client):
    company = load_object(request, client, "/get-company-info", failure="Failed to load company info.")
    company = company.get("company") if isinstance(company.get("company"), dict) else {}
    return {
        "document_types": load_list(request, client, "/master/get-typeof-masterdocument",
                                    failure="Failed to load document types."),
        "categories": load_list(request, client, "/master/get-document-category",
                                failure="Failed to load categories."),
        "departments": load_list(request, client, "/hrm/department-list", failure="Failed to load departments."),
        "approvers": load_list(request, client, "/approved-by", failure="Failed to load approvers."),
        "companies": [company] if company.get("name") else [],
    }


def _resume_initial(doc):
    return {
        "documentType": doc.get("documenttype") or "",
        "category": doc.get("category") or "",
        "orientation": doc.get("orientation") or "",
        "letterHead": doc.get("letterhead") or "None",
        "name": doc.get("name") or "",
        "documentNo": doc.get("procedureno") or "",
        "code": doc.get("code") or "",
        "department": doc.get("department") or "",
        "issueNo": doc.get("issueno") or "01",
        "issueDate": parse_iso(doc.get("issuedate")) or timezone.localdate(),
        "effectiveDate": parse_iso(doc.get("effdate")),
        "reviewBefore": parse_iso(doc.get("revbefore")),
        "revNo": doc.get("revno") or "00",
        "revDate": to_display(parse_iso(doc.get("revdate"))) or "NA",
        "header": doc.get("header") or "For Standard Operating Procedure",
        "footer": doc.get("footer") or "Standard Operating Procedure",
        "deadlineInDays": doc.get("deadline") or "",
        "reviewedBy": doc.get("reviewedby") or "",
        "approvedBy": doc.get("approvedby") or "",
        "isTrainingRequired": doc.get("istrainingrequired") or "Yes",
        "content": doc.get("content") or "",
    }


def _document_form(request, resume_id=None):
    client = backend_for(request)
    choices = _document_choices(request, client)

    if request.method == "POST":
        form = MasterDocumentForm(request.POST, **choices)
        if form.is_valid():
            draft = "save_draft" in request.POST
            status = services.DRAFT_STATUS if draft else services.SUBMIT_STATUS
            try:
                result = services.save_document(client, form.cleaned_data, status, resume_id=resume_id)
            except BackendError as exc:
                messages.error(request, exc.message)
            else:
                list_url = reverse("masterdata:document_list")
                if draft:
                    messages.success(request, "Document saved as draft successfully!")
                    return redirect(f"{list_url}?type=saved")
                document_id = result.get("document_id") if isinstance(result, dict) else None
                messages.success(request, f"Document submitted successfully! Document ID: {document_id}")
                if form.cleaned_data["isTrainingRequired"] == "Yes" and document_id:
                    return redirect("masterdata:training_edit", document_id=document_id)
                return redirect(f"{list_url}?type=pending")
        else:
            messages.error(request, "Please fill all required fields")
    else:
        initial = {"issueDate": timezone.localdate()}
        if resume_id:
            resumed = load_object(request, client, f"/master/resume-document/{resume_id}",
                                  failure="Failed to load document data.")
            doc = resumed.get("document") if isinstance(resumed.get("document"), dict) else resumed
            if not doc:
                return redirect("masterdata:document_list")
            initial = _resume_initial(doc)
        form = MasterDocumentForm(initial=initial, **choices)

    return render(request, "masterdata/document_form.html", {"form": form, "resume_id": resume_id})


@login_required
@permission_required(PERMISSION, raise_exception=True)
def document_add(request):
    return _document_form(request)


@login_required
@permission_required(PERMISSION, raise_exception=True)
def document_resume(request, pk):
    return _document_form(request, resume_id=pk)


@login_required
@permission_required(PERMISSION, raise_exception=True)
def training_list(request):
    rows = load_list(request, backend_for(request), "/master/view-training-module-list",
                     failure="Failed to load training modules.")
    table = DataTable(
        request, rows, TRAINING_COLUMNS, "training-modules-1",
        actions=training_actions(services.file_url), row_key="module_id",
    )
    export = table.export_response("training_modules")
    if export is not None:
        return export
    return render(request, "core/table_page.html", {
        "title": "Training Modules",
        "table": table,
        "back_url": reverse("masterdata:document_list"),
    })


@login_required
@permission_required(PERMISSION, raise_exception=True)
def training_edit(request, document_id):
    client = backend_for(request)
    data = load_object(request, client, f"/master/get-training-module-byid/{document_id}",
                       failure="Failed to load training module.")
    if not data:
        return redirect("masterdata:training_list")
    document = data.get("document") or {}
    module = data.get("module") or {}
    existing = [q for q in data.get("questions") or [] if isinstance(q, dict)]

    if request.method == "POST":
        form = TrainingModuleForm(request.POST, request.FILES)
        formset = QuestionFormSet(request.POST, prefix="questions")
        if "add_question" in request.POST:
            form = TrainingModuleForm(initial={field: request.POST.get(field, "") for field in MODULE_FIELDS})
            formset = QuestionFormSet(initial=formset.posted_rows() + [{"ans": "opt1"}], prefix="questions")
        elif form.is_valid() and formset.is_valid():
            questions = [f.cleaned_data for f in formset if f.cleaned_data and not f.cleaned_data.get("DELETE")]
            try:
                services.save_training_module(client, form.cleaned_data, document_id, questions)
            except BackendError as exc:
                messages.error(request, exc.message)
            else:
                messages.success(request, "Training module updated successfully!")
                return redirect("masterdata:training_edit", document_id=document_id)
    else:
        form = TrainingModuleForm(initial={
            "modulename": document.get("name") or "",
            "frequency": module.get("frequency") or "",
            "repeatcycle": module.get("repeatcycle") or "",
            "time": module.get("time") or "",
            "video": module.get("video") or "",
        })
        formset = QuestionFormSet(prefix="questions")

    return render(request, "masterdata/training_edit.html", {
        "document_id": document_id,
        "document": document,
        "form": form,
        "formset": formset,
        "existing": existing,
    })


@login_required
@permission_required(PERMISSION, raise_exception=True)
@require_POST
def training_question_delete(request, document_id, question_id):
    try:
        services.delete_question(backend_for(request), question_id, document_id)
    except BackendError as exc:
        messages.error(request, exc.message)
    else:
        messages.success(request, "Question deleted successfully")
    return redirect("masterdata:training_edit", document_id=document_id)
