from django.urls import reverse

from core.tables import MISSING_ID, Column, RowAction, row_id

PRICE_COLUMNS = [
    Column("id", "ID", hideable=False),
    Column("packagename", "Package Name"),
    Column("packagedesc", "Package Description"),
    Column("accreditation", "Accreditation"),
    Column("location", "Location"),
    Column("daysrequired", "Days Required"),
    Column("rate", "Rate"),
]

POINT_COLUMNS = [
    Column("id", "ID", hideable=False),
    Column("parameter", "Parameter"),
    Column("setpoint", "Setpoint"),
    Column("uuc", "UUC"),
    Column("master", "Master"),
    Column("error", "Error"),
    Column("specification", "Specification"),
    Column("remark", "Remark"),
]


def price_actions(instrument_id):
    def actions(row):
        pk = row_id(row)
        if pk is None:
            return [MISSING_ID]
        return [
            # the points screen is keyed on (instrument, price) for this listing
            RowAction("View Matrix", reverse("calibration:points_list", args=[instrument_id, pk])),
            RowAction(
                "Delete",
                reverse("calibration:price_delete", args=[instrument_id, pk]),
                method="post",
                confirm="Delete this calibration price?",
                style="danger",
            ),
        ]
    return actions


def point_actions(price_id, matrix_id):
    def actions(row):
        pk = row_id(row)
        if pk is None:
            return [MISSING_ID]
        return [
            RowAction("Edit", reverse("calibration:point_edit", args=[price_id, matrix_id, pk])),
            RowAction(
                "Delete",
                reverse("calibration:point_delete", args=[price_id, matrix_id, pk]),
                method="post",
                confirm="Delete this calibration point?",
                style="danger",
            ),
        ]
    return actions
