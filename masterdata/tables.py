from django.urls import reverse

from core.dates import format_timestamp
from core.tables import MISSING_ID, Column, RowAction, row_id


def _dash(key):
    return lambda row: row.get(key) or "-"


DOCUMENT_COLUMNS = [
    Column("sr_no", "Sr No"),
    Column("name", "Name", hideable=False),
    Column("code", "Document No./Procedure No"),
    Column("issueno", "Issue No"),
    Column("revno", "Rev No"),
    Column("category", "Category", accessor=_dash("category")),
    Column("header", "Header", accessor=_dash("header")),
    Column("footer", "Footer", accessor=_dash("footer")),
    Column("added_on", "Added On", accessor=lambda row: format_timestamp(row.get("added_on")) or "-"),
    Column("sharedwith", "Shared With", accessor=_dash("sharedwith")),
]

TRAINING_COLUMNS = [
    Column("module_id", "ID"),
    Column("name", "Module Name", hideable=False),
    Column("code", "Code", accessor=_dash("code")),
    Column("revno", "Rev No", accessor=lambda row: row.get("revno") or "00"),
    Column("category_name", "Category", accessor=_dash("category_name")),
    Column("question_count", "Questions", accessor=lambda row: row.get("question_count") or 0),
]


def training_actions(file_url):
    def actions(row):
        links = []
        if row.get("file_path"):
            links.append(RowAction("View File", file_url(row["file_path"]), style="info"))
        document_id = row_id(row, "documentid")
        if document_id is None:
            links.append(MISSING_ID)
        else:
            links.append(RowAction("Edit Question", reverse("masterdata:training_edit", args=[document_id])))
        return links
    return actions
