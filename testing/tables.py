from core.dates import to_display
from core.tables import Column

from .services import joined, status_label

TRF_COLUMNS = [
    Column("id", "TRF Inward Entry No", hideable=False),
    Column("trf_entry_no", "TRF Entry No"),
    Column("date", "Date", accessor=lambda row: to_display(str(row.get("date") or "")[:10]) or "-"),
    Column("customername", "Customer", accessor=lambda row: row.get("customername") or "-"),
    Column("products", "Products", accessor=lambda row: joined(row.get("products"))),
    Column("brn", "BRN Nos", accessor=lambda row: joined(row.get("brn"))),
    Column("lrn", "LRN Nos", accessor=lambda row: joined(row.get("lrn"))),
    Column("grades", "Grades", accessor=lambda row: joined(row.get("grades"))),
    Column("sizes", "Sizes", accessor=lambda row: joined(row.get("sizes"))),
    Column("ponumber", "PO Number"),
    Column("reportname", "Report Name"),
    Column("customer_type_display", "Customer Type"),
    Column("specific_purpose_display", "Specific Purpose"),
    Column("bd", "BD"),
    Column("reviewremark", "Remarks"),
    Column("status", "Status", accessor=lambda row: status_label(row.get("status"))),
]
