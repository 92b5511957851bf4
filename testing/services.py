"""TRF list and customer feedback calls."""
import logging

from django.urls import reverse

from core.dates import today_display
from core.services import ensure_success
from core.shortcuts import legacy_url
from core.tables import MISSING_ID, RowAction, row_id

logger = logging.getLogger(__name__)

FEEDBACK_TYPE = "Testing"

STATUS_LABELS = {
    0: "Pending For Submit Review",
    1: "Pending For Review",
    4: "Completed",
    5: "Completed",
    9: "Completed",
    98: "Pending For Approvals",
}

RATING_FIELDS = (
    ("behavior", "Behavior of Staff"),
    ("response", "Response of technical & General query through letter/phone/E-Mail"),
    ("timelydelivry", "Commitment and timely delivery of calibration certificates/test Report"),
    ("qualityofreport", "Quality of certificate/test report and its presentation"),
    ("reliabilityofresult", "Reliability of calibration/Test results"),
    ("qualityofservice", "Overall quality of services provided by us"),
)


def _int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def status_label(status):
    code = _int(status)
    if code in STATUS_LABELS:
        return STATUS_LABELS[code]
    return f"Status {status}"


def joined(values):
    if not isinstance(values, (list, tuple)) or not values:
        return "-"
    return ", ".join(str(value) for value in values)


def trf_actions(row):
    """Links for one TRF, driven by its workflow status."""
    pk = row_id(row)
    if pk is None:
        return [MISSING_ID]
    status = _int(row.get("status"))
    has_products = isinstance(row.get("products"), list) and bool(row.get("products"))
    actions = []

    if status in (0, 98):
        actions.append(RowAction("Add Items", legacy_url("/trfitems", hakuna=pk)))
    if status == 1 and has_products:
        actions.append(RowAction("Sample Review", legacy_url("/samplereview", hakuna=pk)))
    if status == 2 and has_products:
        actions.append(RowAction("Technical Acceptance", legacy_url("/trfitems", hakuna=pk)))
    if status == 3 and has_products:
        actions.append(RowAction("Allot Sample", reverse("actionitems:allot_sample_list")))
    if status in (3, 4) and has_products:
        actions.append(RowAction("Assign Chemist", reverse("actionitems:assign_chemist_list")))
    actions.append(RowAction("Details", legacy_url("/trfitems", hakuna=pk), style="secondary"))
    if status == 5:
        actions.append(RowAction("Perform Testing", reverse("actionitems:perform_testing_list")))
    elif status == 6:
        actions.append(RowAction("View Draft Report", reverse("actionitems:draft_report_list")))
    elif status == 7:
        actions.append(RowAction("HOD Review", reverse("actionitems:hod_review_list")))
    elif status == 8:
        actions.append(RowAction("QA Review", legacy_url("/qareview", hakuna=pk)))
    elif status == 9:
        actions.append(RowAction("Generate ULR", legacy_url("/generateulr", hakuna=pk)))
    elif status == 10:
        actions.append(RowAction("View Reports", legacy_url("/viewreports", hakuna=pk), style="info"))
    if status is not None and status > 3:
        actions.append(RowAction("Print Slip", legacy_url("/printslip", hakuna=pk), style="secondary"))
    if status is not None and (status < 10 or status == 98):
        actions.append(RowAction("Edit TRF", legacy_url("/edittrf", hakuna=pk)))
    actions.append(RowAction("Fill Feedback Form", reverse("testing:feedback", args=[pk]), style="success"))
    actions.append(RowAction(
        "Delete",
        reverse("testing:trf_delete", args=[pk]),
        method="post",
        confirm="Are you sure you want to delete this TRF entry? Once deleted, it cannot be restored.",
        style="danger",
    ))
    return actions


def decorate_trfs(rows, customer_types, purposes):
    """Add display fields; ``customer_types`` and ``purposes`` map id to name."""
    decorated = []
    for row in rows:
        if not isinstance(row, dict):
            continue
        row = dict(row)
        row["customer_type_display"] = customer_types.get(str(row.get("ctype"))) or f"Type {row.get('ctype')}"
        row["specific_purpose_display"] = (
            purposes.get(str(row.get("specificpurpose"))) or f"Purpose {row.get('specificpurpose')}"
        )
        row["trf_entry_no"] = row.get("trf_entry_no") or f"TRF-{row.get('id')}"
        decorated.append(row)
    return decorated


def delete_trf(client, pk):
    return ensure_success(client.delete("/testing/delete-trf", params={"id": pk}), "Failed to delete TRF entry")


def feedback_payload(cleaned, customer, inward_id):
    payload = {field: int(cleaned[field]) for field, _ in RATING_FIELDS}
    payload.update({
        "willyourecommend": cleaned["willyourecommend"],
        "willyourecommendreason": cleaned["willyourecommendreason"],
        "suggestion": cleaned["suggestion"],
        "contactpersonname": cleaned.get("contactpersonname") or "",
        "contactpersondepartment": cleaned.get("contactpersondepartment") or "",
        "contactpersondesignation": cleaned.get("contactpersondesignation") or "",
        "customername": customer.get("customername") or "",
        "customeraddress": customer.get("customeraddress") or "",
        "customerid": _int(customer.get("customerid")) or 0,
        "addressid": _int(customer.get("addressid")) or 0,
        "cperson": _int((customer.get("contactperson") or {}).get("id")) or 0,
        "inwardid": int(inward_id),
        "type": FEEDBACK_TYPE,
        "date": today_display(),
    })
    return payload


def send_feedback(client, cleaned, customer, inward_id):
    payload = feedback_payload(cleaned, customer, inward_id)
    logger.info("Sending customer feedback for TRF %s", inward_id)
    return ensure_success(client.post("/testing/send-feedback-form", payload), "Failed to submit feedback")
