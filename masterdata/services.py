"""Master document workflow and training module calls.

Document status codes come from the backend:
-1 saved, 0 pending review, 1 pending approval, 2 active.
"""
import logging

from django.conf import settings
from django.urls import reverse

from core.dates import to_display
from core.services import ensure_success
from core.shortcuts import legacy_url
from core.tables import MISSING_ID, RowAction, row_id

logger = logging.getLogger(__name__)

DELETABLE_STATUSES = (-1, 0, 1)
SUBMIT_STATUS = 0
DRAFT_STATUS = -1

QUESTION_FIELDS = ("question", "opt1", "opt2", "opt3", "opt4", "ans", "expaination")


def _int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def can_delete(doc):
    return _int(doc.get("status")) in DELETABLE_STATUSES


def document_actions(doc, employee_id):
    """Buttons for one master document row as seen by ``employee_id``."""
    pk = row_id(doc)
    if pk is None:
        return [MISSING_ID]
    status = _int(doc.get("status"))
    open_draft = _int(doc.get("approval_status")) == 0 and _int(doc.get("obsoletestatus")) == 0
    me = str(employee_id) if employee_id else None

    actions = [RowAction("View", legacy_url("/textmasterdoument.php", docID=pk))]
    if can_delete(doc):
        actions.append(RowAction(
            "Delete",
            reverse("masterdata:document_delete", args=[pk]),
            method="post",
            confirm="Are you sure you want to delete this document?",
            style="danger",
        ))
    if open_draft and status in DELETABLE_STATUSES:
        actions.append(RowAction("Resume", reverse("masterdata:document_resume", args=[pk])))
    reviewer = str(doc.get("reviewedby")) if doc.get("reviewedby") else None
    approver = str(doc.get("approvedby")) if doc.get("approvedby") else None
    if open_draft and status == 0 and me and reviewer == me:
        actions.append(RowAction(
            "Review",
            reverse("masterdata:document_review", args=[pk]),
            method="post",
            confirm="Are you sure you want to mark this document as reviewed?",
            style="warning",
        ))
    elif open_draft and status == 1 and me and approver == me:
        actions.append(RowAction("Approve", reverse("masterdata:document_approve", args=[pk]), style="success"))
    return actions


def delete_document(client, pk):
    return ensure_success(client.post("/deletemasterdocument.php", {"id": int(pk)}), "Failed to delete document")


def review_document(client, pk):
    return ensure_success(client.post("/reviewdocumentnew.php", {"id": int(pk)}), "Failed to review document")


def approve_document(client, pk, effective_date):
    """``effective_date`` is sent as ``YYYY-MM-DD``."""
    return ensure_success(
        client.post("/approvedocumentnew.php", {"id": int(pk), "effectiveDate": effective_date}),
        "Failed to approve document",
    )


def approver_name(person):
    parts = (person.get(key) for key in ("prefix", "firstname", "middlename", "lastname"))
    return " ".join(part for part in parts if part)


def document_payload(cleaned, status):
    effdate = to_display(cleaned["effectiveDate"])
    revbefore = to_display(cleaned["reviewBefore"])
    revdate = cleaned.get("revDate") or "NA"
    reviewed_on = to_display(cleaned.get("reviewedOn")) or revbefore
    return {
        "documenttype": int(cleaned["documentType"]),
        "category": int(cleaned["category"]),
        "orientation": cleaned["orientation"],
        "letterhead": cleaned.get("letterHead") or "None",
        "name": cleaned["name"],
        "code": cleaned.get("code") or "",
        "procedureno": cleaned["documentNo"],
        "department": int(cleaned["department"]),
        "issueno": cleaned.get("issueNo") or "",
        "issuedate": to_display(cleaned.get("issueDate")),
        "effdate": effdate,
        "revbefore": revbefore,
        "revno": cleaned.get("revNo") or "",
        "revdate": effdate if revdate == "NA" else revdate,
        "header": cleaned.get("header") or "",
        "footer": cleaned.get("footer") or "",
        "deadline": int(cleaned["deadlineInDays"]),
        "reviewedby": int(cleaned["reviewedBy"]),
        "approvedby": int(cleaned["approvedBy"]),
        "reviewed_on": reviewed_on,
        "istrainingrequired": cleaned["isTrainingRequired"],
        "content": cleaned.get("content") or "",
        "status": status,
    }


def save_document(client, cleaned, status, resume_id=None):
    payload = document_payload(cleaned, status)
    if resume_id:
        payload["id"] = int(resume_id)
    logger.info("Saving master document %r with status %s", payload["name"], status)
    return ensure_success(client.post("/master/add-master-document", payload), "Error saving document")


def training_module_data(cleaned, document_id, questions):
    data = {
        "modulename": cleaned["modulename"],
        "documentid": str(document_id),
        "frequency": str(cleaned["frequency"]),
        "repeatcycle": cleaned["repeatcycle"],
        "time": str(cleaned["time"]),
        "video": cleaned.get("video") or "",
    }
    for field in QUESTION_FIELDS:
        data[f"{field}[]"] = [question[field] for question in questions]
    return data


def save_training_module(client, cleaned, document_id, questions):
    data = training_module_data(cleaned, document_id, questions)
    image = cleaned.get("file")
    files = None
    if image:
        image.seek(0)
        files = {"file": (image.name, image.read(), image.content_type or "application/octet-stream")}
    logger.info("Saving training module for document %s with %s new question(s)", document_id, len(questions))
    return ensure_success(
        client.post("/master/add-training-module", data=data, files=files),
        "Error updating training module",
    )


def delete_question(client, question_id, document_id):
    return ensure_success(
        client.post(
            "/master/delete-training-module-question",
            {"queId": int(question_id), "documentid": int(document_id)},
        ),
        "Failed to delete question",
    )


def file_url(path):
    if str(path).startswith("http"):
        return path
    return f"{settings.LABDESK_API_BASE_URL.rstrip('/')}/{str(path).lstrip('/')}"
