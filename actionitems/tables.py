from django.urls import reverse

from core.dates import is_tat_overdue
from core.tables import MISSING_ID, Column, RowAction, row_id

from .services import grade_size


def _overdue(key):
    def css(row):
        return "tat-overdue" if is_tat_overdue(row.get(key)) else ""
    return css


ALLOT_SAMPLE_COLUMNS = [
    Column("id", "ID", hideable=False),
    Column("customer", "Customer"),
    Column("product", "Product"),
    Column("package", "Package"),
    Column("lrn", "LRN"),
    Column("brn", "BRN"),
    Column("grade_size", "Grade/Size", accessor=grade_size),
    Column("brand", "Brand/Source"),
    Column("customer_type", "Customer Type"),
    Column("specific_purpose", "Specific Purpose"),
]

ACCEPT_SAMPLE_COLUMNS = [
    Column("s_no", "Sr. No"),
    Column("lrn", "LRN", hideable=False),
    Column("date", "Date"),
    Column("product", "Product"),
    Column("department", "Department"),
    Column("package", "Package"),
    Column("quantity", "Quantity"),
    Column("customer_type", "Customer Type"),
    Column("specific_purpose", "Specific Purpose"),
]

ASSIGN_CHEMIST_COLUMNS = [
    Column("s_no", "S. No."),
    Column("product", "Product"),
    Column("package", "Package"),
    Column("lrn", "LRN", hideable=False),
    Column("grade_size", "Grade/Size", accessor=grade_size),
    Column("customer_type", "Customer Type"),
    Column("specific_purpose", "Specific Purpose"),
]

PERFORM_TESTING_COLUMNS = [
    Column("id", "ID", hideable=False),
    Column("product", "Product"),
    Column("lrn", "LRN"),
    Column("brand", "Brand/Source"),
    Column("grade_size", "Grade/Size", accessor=grade_size),
    Column("long_term_test", "Long Term Test"),
    Column("interim_report_date", "Tentative Report Date (INTERIM)", css=_overdue("interim_report_date")),
    Column("longterm_report_date", "Tentative Report Date (LONGTERM)", css=_overdue("longterm_report_date")),
    Column("tentative_report_date", "Tentative Report Date", css=_overdue("tentative_report_date")),
]

TEST_EVENT_COLUMNS = [
    Column("product", "Product"),
    Column("package", "Package"),
    Column("parameter", "Parameter", hideable=False),
    Column("description", "Description"),
    Column("department", "Department"),
    Column("chemist", "Chemist"),
    Column("assign_date", "Assign Date"),
    Column("due_date", "Due Date"),
    Column("tat", "TAT", css=_overdue("tat")),
]

HOD_REQUEST_COLUMNS = [
    Column("id", "ID", hideable=False),
    Column("product", "Product"),
    Column("package", "Package"),
    Column("lrn", "LRN"),
    Column("brn", "BRN"),
    Column("ulr", "ULR"),
    Column("price", "Price"),
    Column("department", "Department"),
    Column("customer_type", "Customer Type"),
    Column("specific_purpose", "Specific Purpose"),
]

DRAFT_REPORT_COLUMNS = [
    Column("id", "ID", hideable=False),
    Column("product", "Product"),
    Column("lrn", "LRN"),
]


def allot_sample_actions(row):
    pk = row_id(row)
    if pk is None:
        return [MISSING_ID]
    return [RowAction("Allot Sample", reverse("actionitems:allot_sample_form", args=[pk]))]


def accept_sample_actions(row):
    pk = row_id(row)
    if pk is None:
        return [MISSING_ID]
    return [RowAction(
        "Accept",
        reverse("actionitems:accept_sample", args=[pk]),
        method="post",
        style="success",
    )]


def assign_chemist_actions(row):
    pk = row_id(row)
    if pk is None:
        return [MISSING_ID]
    return [RowAction("Assign Chemist", reverse("actionitems:assign_chemist_form", args=[pk]))]


def perform_testing_actions(row):
    pk = row_id(row)
    if pk is None:
        return [MISSING_ID]
    return [RowAction("Perform Test", reverse("actionitems:perform_testing_detail", args=[pk]))]


def draft_report_actions(row):
    pk = row_id(row)
    if pk is None:
        return [MISSING_ID]
    url = reverse("actionitems:draft_report_detail", args=[pk])
    if row.get("hod_id"):
        url = f"{url}?hod_id={row['hod_id']}"
    return [RowAction("View Draft Report", url, style="info")]
