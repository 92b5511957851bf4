"""Row-action rules and backend calls for the action item screens.

The backend owns every status transition; these helpers only translate the
status codes it returns into the buttons a user may press.
"""
import logging
import re
from urllib.parse import urlencode

from django.urls import reverse

from core.services import ensure_success
from core.shortcuts import legacy_url
from core.tables import MISSING_ID, RowAction

logger = logging.getLogger(__name__)

HOD_PERMISSION = 180
QA_PERMISSION = 181

SPEC_MAX = re.compile(r"^max\.?\s*([\d.]+)", re.I)
SPEC_MIN = re.compile(r"^min\.?\s*([\d.]+)", re.I)
SPEC_RANGE = re.compile(r"([\d.]+)\s*(?:to|-)\s*([\d.]+)", re.I)


def as_int(value):
    try:
        return int(value)
    except (TypeError, ValueError):
        return None


def truthy(value):
    if isinstance(value, str):
        return value.strip().lower() not in ("", "0", "false", "no", "null")
    return bool(value)


def grade_size(row):
    if row.get("grade_size"):
        return row["grade_size"]
    return f"{row.get('grade') or 'NA'}/{row.get('size') or 'NA'}"


def person_name(person):
    return f"{person.get('firstname') or ''} {person.get('lastname') or ''}".strip()


def hod_actions(row):
    """Buttons for a row of the HOD request list, keyed on ``hodstatus``."""
    tid = as_int(row.get("id"))
    status = as_int(row.get("hodstatus"))
    if status not in (3, 4, 5, 6, 7, 8, 9):
        return [RowAction("Pending TRF Approval")]
    if tid is None:
        return [MISSING_ID]

    if status == 3:
        return [
            RowAction("Allot Quantity", reverse("actionitems:allot_sample_form", args=[tid])),
            RowAction(
                "Remove Item",
                reverse("actionitems:remove_item", args=[tid]),
                method="post",
                confirm="Remove this item from the TRF?",
                style="danger",
            ),
        ]
    if status == 4:
        return [RowAction("Assign Chemist", reverse("actionitems:assign_chemist_form", args=[tid]))]
    if status == 5:
        detail_url = reverse("actionitems:perform_testing_detail", args=[tid])
        if as_int(row.get("packagetype")) == 0:
            return [RowAction("Upload Report", detail_url, style="warning")]
        return [RowAction("Perform Test", detail_url)]

    report_url = reverse("actionitems:test_report", args=[tid])
    if status == 6:
        return [RowAction("View Draft Report", report_url, style="info")]
    if status == 7:
        hid = row.get("hodid")
        url = f"{report_url}?{urlencode({'hid': hid})}" if hid else report_url
        return [RowAction("Review By HOD", url, style="warning")]
    if status == 8:
        return [RowAction("Review By QA", report_url, style="warning")]
    return [RowAction("Generate Final Report", report_url, style="success")]


def test_event_actions(event):
    """Buttons for one test event on the perform-testing detail page."""
    teid = event.get("testeventdata_id")
    tid = event.get("tid")
    if as_int(teid) is None or as_int(tid) is None:
        return [MISSING_ID]
    status = as_int(event.get("status"))
    is_chemist = truthy(event.get("is_chemist"))
    has_documents = truthy(event.get("has_documents"))
    back = urlencode({"tid": tid})
    actions = []

    if status in (0, 24):
        if truthy(event.get("witnesslock")):
            actions.append(RowAction("Locked For Witness"))
        elif status == 0 and not event.get("start_time"):
            if not is_chemist:
                actions.append(RowAction("Pending To start"))
            elif not has_documents:
                actions.append(RowAction(
                    "Start",
                    f"{reverse('actionitems:start_test', args=[teid])}?{back}",
                    method="post",
                    style="success",
                ))
                upload = reverse("actionitems:upload_documents", args=[tid, teid])
                actions.append(RowAction(
                    "Upload Document",
                    f"{upload}?{urlencode({'trf': event.get('trfid') or ''})}",
                    style="secondary",
                ))
            else:
                actions.append(RowAction(
                    "Start",
                    f"{reverse('actionitems:start_test_on_date', args=[teid])}?{back}",
                    style="success",
                ))
        elif is_chemist:
            actions.append(RowAction("Test Input", legacy_url("/testinput", hakuna=teid)))
        else:
            actions.append(RowAction("Pending Test Input"))
    else:
        actions.append(RowAction("Test Completed"))
        actions.append(RowAction("View Raw Data", legacy_url("/viewrawdatasingle", hakuna=teid), style="info"))

    if has_documents:
        actions.append(RowAction(
            "View Documents",
            legacy_url("/viewTestItemDocuments", hakuna=event.get("trfid"), matata=tid, testeventdata_id=teid),
            style="secondary",
        ))
    return actions


def result_compliance(result, specification):
    """``"pass"``/``"fail"`` when a numeric result can be checked against its specification."""
    if not result or not specification:
        return ""
    try:
        value = float(result)
    except (TypeError, ValueError):
        return ""
    spec = str(specification).strip()

    match = SPEC_MAX.match(spec)
    if match:
        return "pass" if value <= float(match.group(1)) else "fail"
    match = SPEC_MIN.match(spec)
    if match:
        return "pass" if value >= float(match.group(1)) else "fail"
    match = SPEC_RANGE.search(spec)
    if match:
        low, high = float(match.group(1)), float(match.group(2))
        return "pass" if low <= value <= high else "fail"
    return ""


def normalize_report(report):
    """Flatten the draft-report and test-report payloads into one shape."""
    trf_product = report.get("trf_product") or {}

    status = report.get("report_status")
    if isinstance(status, dict):
        status = status.get("code")
    nabl = report.get("nabl")
    if isinstance(nabl, dict):
        nabl = nabl.get("status")

    remarks = report.get("remarks") if isinstance(report.get("remarks"), dict) else report
    remark_lines = []
    hod_remark = str(remarks.get("hod_remark") or "").strip()
    if hod_remark:
        remark_lines.append(hod_remark)
    if str(remarks.get("witness") or "") == "2" and remarks.get("witness_detail"):
        remark_lines.append(f"The test was witnessed by {remarks['witness_detail']}")
    for key in ("bdl_remark", "adl_remark"):
        if remarks.get(key):
            remark_lines.append(str(remarks[key]))

    results = []
    for row in report.get("results") or report.get("test_results") or []:
        specification = row.get("specification") or ""
        results.append({
            "id": row.get("id"),
            "parameter": row.get("parameter") or "",
            "unit": row.get("unit") or "",
            "result": row.get("result") if row.get("result") not in (None, "") else "-",
            "method": row.get("method") or "",
            "specification": specification,
            "compliance": result_compliance(row.get("result"), specification),
            "can_retest": row.get("can_retest") is True,
        })

    customer = report.get("customer") or {}
    return {
        "lrn": trf_product.get("lrn") or report.get("lrn") or "",
        "brn": trf_product.get("brn") or "",
        "ulr": trf_product.get("ulr") or "",
        "report_date": trf_product.get("reportdate") or "",
        "nabl": as_int(nabl) == 1,
        "report_status": as_int(status) or 0,
        "customer": {
            "name": customer.get("name") or "",
            "address": customer.get("address") or "",
            "contact_person": customer.get("contact_person") or "",
        },
        "product": (report.get("product") or {}).get("name") or report.get("product_name") or "",
        "grade": report.get("grade") or "",
        "size": report.get("size") or "",
        "results": results,
        "has_specs": any(r["specification"] and r["specification"] != "-" for r in results),
        "remarks": remark_lines,
        "signatories": [
            {"name": s.get("name") or "", "title": s.get("authorize_for") or s.get("designation") or ""}
            for s in report.get("signatories") or []
        ],
    }


def draft_report_flags(report):
    """Which controls the draft report page offers."""
    status = as_int(report.get("report_status")) or 0
    permissions = {as_int(p) for p in report.get("permissions") or []}
    counts = report.get("counts") or {}
    left = as_int(counts.get("left")) or 0
    done = as_int(counts.get("done")) or 0
    deleted = as_int(counts.get("deleted")) or 0
    total = as_int(counts.get("total_params")) or 0
    left_mine = as_int(counts.get("left_my_department")) or 0

    can_request_retest = bool(permissions & {HOD_PERMISSION, QA_PERMISSION}) and status < 9
    incomplete = left > 0 or total > done + deleted
    return {
        "show_customer": status > 6,
        "show_retest": can_request_retest,
        "show_partial_hod": left_mine > 0 and incomplete and done > 0,
        "show_full_hod": left_mine > 0 and not incomplete,
    }


def test_report_flags(report, hid):
    status = report.get("report_status")
    if isinstance(status, dict):
        status = status.get("code")
    status = as_int(status) or 0
    permissions = report.get("permissions") if isinstance(report.get("permissions"), dict) else {}
    can_hod = permissions.get("has_hod_permission") is True
    can_qa = permissions.get("has_qa_permission") is True
    return {
        "show_retest": (can_hod or can_qa) and status < 9,
        "retest_all": permissions.get("can_view_actions") is True,
        "show_hod_form": status == 7 and can_hod and bool(hid),
        "show_qa_approve": status == 8 and can_qa and bool(hid),
        "show_customer": status > 6,
    }


# Backend writes

def allot_items(client, trfproduct, department, person, items):
    payload = {
        "department": int(department),
        "trfproduct": int(trfproduct),
        "person": int(person),
        "qid": [item["qid"] for item in items],
        "biscode": [item["biscode"] for item in items],
        "alloted": [item["alloted"] for item in items],
    }
    logger.info("Allotting %s item(s) for TRF product %s", len(items), trfproduct)
    return ensure_success(client.post("/actionitem/allot-items", payload), "Failed to allot items.")


def remove_trf_item(client, tid):
    return ensure_success(client.delete(f"/actionitem/delete-trf-item/{tid}"), "Failed to remove item.")


def accept_item(client, pk):
    return ensure_success(client.post("/actionitem/accept-alloted-item", {"id": pk}), "Failed to accept item.")


def assign_chemists(client, trfproduct, cleaned, rows):
    def iso(value):
        return value.isoformat() if value else ""

    payload = {
        "department": cleaned.get("department") or "",
        "trfproduct": trfproduct,
        "person": cleaned.get("person") or "",
        "allo": iso(cleaned.get("allo")),
        "dued": iso(cleaned.get("dued")),
        "longTermTest": cleaned["longTermTest"],
        "interim_yes": iso(cleaned.get("interim_yes")),
        "longterm": iso(cleaned.get("longterm")),
        "interim_no": iso(cleaned.get("interim_no")),
        "parameter": [row["parameter"] for row in rows],
        "chemist": [row["chemist"] for row in rows],
        "allotmentdate": [iso(row["allotmentdate"]) for row in rows],
        "duedate": [iso(row["duedate"]) for row in rows],
    }
    return ensure_success(client.post("/actionitem/add-assign-chemists", payload), "Failed to assign chemist.")


def start_test(client, teid, enddate):
    """``enddate`` is already in ``DD/MM/YYYY`` form."""
    return ensure_success(
        client.post("/actionitem/start-test", {"id": teid, "enddate": enddate}),
        "Failed to start test.",
    )


def upload_test_documents(client, name, trfs_id, trfproducts_id, testeventdata_id, files):
    data = {
        "name": name,
        "trfs_id": str(trfs_id or ""),
        "trfproducts_id": str(trfproducts_id),
        "testeventdata_id": str(testeventdata_id),
    }
    upload = [("path[]", (f.name, f.read(), f.content_type or "application/octet-stream")) for f in files]
    return ensure_success(
        client.post("/actionitem/insert-test-documents", data=data, files=upload),
        "Failed to upload documents.",
    )


def request_retest(client, teid):
    return ensure_success(client.get(f"/actionitem/request-retest/{teid}"), "Failed to request re-test.")


def request_reset(client, teid):
    return ensure_success(client.get(f"/actionitem/request-reset/{teid}"), "Failed to request re-test.")


def submit_hod_request(client, tid):
    return ensure_success(
        client.post("/actionitem/submit-hod-request", params={"aid": tid}),
        "Submission failed.",
    )


def submit_qa_approve(client, hid, hodremark, items):
    payload = {
        "aid": hid,
        "hodremark": hodremark,
        "qid": [item["qid"] for item in items],
        "remnant": [item.get("remnant") or 0 for item in items],
        "remark": [item.get("remark") or "" for item in items],
        "itemdepartment": [item["department"] for item in items],
    }
    return ensure_success(client.post("/actionitem/submit-qa-approve", payload), "Submission failed.")


def approve_ulr(client, hid):
    return ensure_success(client.post("/actionitem/approve-submit-ulr", {"hid": hid}), "Approval failed.")
