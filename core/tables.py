"""Server-side rendition of the dashboard data grid.

Rows are whatever dicts the backend returned. The table applies the global
filter, per-column filters, sorting and pagination from the query string,
and keeps column visibility and pinning in the session per table key.
"""
import csv
import io
from collections import namedtuple

import openpyxl
from django.conf import settings
from django.core.paginator import Paginator
from django.http import HttpResponse

PREFS_PREFIX = "column-visibility-"

RowAction = namedtuple("RowAction", ["label", "url", "method", "confirm", "style"])
RowAction.__new__.__defaults__ = (None, "get", "", "primary")

TableRow = namedtuple("TableRow", ["pk", "data", "cells", "actions"])

# shown instead of links when a backend row has no usable id
MISSING_ID = RowAction("No ID")


def row_id(row, key="id"):
    try:
        return int(row.get(key))
    except (TypeError, ValueError):
        return None


class Column:
    def __init__(self, key, header, accessor=None, sortable=True, hideable=True, css=None):
        self.key = key
        self.header = header
        self.accessor = accessor
        self.sortable = sortable
        self.hideable = hideable
        self.css = css

    def value(self, row):
        if self.accessor is not None:
            value = self.accessor(row)
        else:
            value = row.get(self.key) if isinstance(row, dict) else None
        return "" if value is None else value

    def css_class(self, row):
        return self.css(row) if self.css is not None else ""


def prefs_key(table_key):
    return f"{PREFS_PREFIX}{table_key}"


def load_prefs(session, table_key):
    prefs = session.get(prefs_key(table_key)) or {}
    return {
        "hidden": list(prefs.get("hidden", [])),
        "pinned": list(prefs.get("pinned", [])),
    }


def save_prefs(session, table_key, hidden, pinned):
    session[prefs_key(table_key)] = {"hidden": list(hidden), "pinned": list(pinned)}


def _sort_key(value):
    # numeric strings compare as numbers and sort ahead of text
    try:
        return (0, float(value), "")
    except (TypeError, ValueError):
        return (1, 0, str(value).lower())


def _positive_int(value):
    try:
        number = int(value)
    except (TypeError, ValueError):
        return None
    return number if number > 0 else None


class DataTable:
    def __init__(self, request, rows, columns, table_key, actions=None, row_key="id",
                 per_page=None, selectable=False):
        self.request = request
        self.columns = list(columns)
        self.table_key = table_key
        self.actions = actions
        self.row_key = row_key
        self.selectable = selectable

        prefs = load_prefs(request.session, table_key)
        self.hidden = {key for key in prefs["hidden"] if self.column(key) and self.column(key).hideable}
        self.pinned = [key for key in prefs["pinned"] if self.column(key)]

        self.query = request.GET.get("q", "").strip()
        self.column_filters = {}
        for column in self.columns:
            needle = request.GET.get(f"f_{column.key}", "").strip()
            if needle:
                self.column_filters[column.key] = needle
        self.sort = request.GET.get("sort", "")
        self.direction = "desc" if request.GET.get("dir") == "desc" else "asc"

        self.rows = self._apply(list(rows))
        per_page = _positive_int(request.GET.get("per_page")) or per_page or settings.LABDESK_PAGE_SIZE
        self.paginator = Paginator(self.rows, per_page)
        self.page = self.paginator.get_page(request.GET.get("page"))

    def column(self, key):
        for column in self.columns:
            if column.key == key:
                return column
        return None

    @property
    def has_actions(self):
        return self.actions is not None

    @property
    def visible_columns(self):
        shown = [c for c in self.columns if c.key not in self.hidden]
        pinned = [c for c in shown if c.key in self.pinned]
        return pinned + [c for c in shown if c.key not in self.pinned]

    @property
    def column_states(self):
        return [
            {
                "column": c,
                "visible": c.key not in self.hidden,
                "pinned": c.key in self.pinned,
                "filter": self.column_filters.get(c.key, ""),
            }
            for c in self.columns
        ]

    def _apply(self, rows):
        for key, needle in self.column_filters.items():
            column = self.column(key)
            needle = needle.lower()
            rows = [row for row in rows if needle in str(column.value(row)).lower()]

        if self.query:
            needle = self.query.lower()
            searchable = self.visible_columns
            rows = [row for row in rows if any(needle in str(c.value(row)).lower() for c in searchable)]

        column = self.column(self.sort)
        if column is not None and column.sortable:
            rows = sorted(rows, key=lambda row: _sort_key(column.value(row)), reverse=self.direction == "desc")
        return rows

    @property
    def page_rows(self):
        columns = self.visible_columns
        for row in self.page.object_list:
            cells = [(column, column.value(row), column.css_class(row)) for column in columns]
            actions = self.actions(row) if self.actions is not None else []
            yield TableRow(row.get(self.row_key), row, cells, actions)

    def export(self, fmt, filename):
        columns = [c for c in self.visible_columns]
        headers = [c.header for c in columns]
        if fmt == "xlsx":
            wb = openpyxl.Workbook()
            ws = wb.active
            ws.title = filename[:31]
            ws.append(headers)
            for row in self.rows:
                ws.append([str(c.value(row)) for c in columns])
            response = HttpResponse(
                content_type="application/vnd.openxmlformats-officedocument.spreadsheetml.sheet"
            )
            response["Content-Disposition"] = f"attachment; filename={filename}.xlsx"
            wb.save(response)
            return response

        buffer = io.StringIO()
        writer = csv.writer(buffer)
        writer.writerow(headers)
        for row in self.rows:
            writer.writerow([c.value(row) for c in columns])
        response = HttpResponse(buffer.getvalue(), content_type="text/csv")
        response["Content-Disposition"] = f"attachment; filename={filename}.csv"
        return response

    def export_response(self, filename):
        """Return an export response when ``?export=xlsx|csv`` is present."""
        fmt = self.request.GET.get("export")
        if fmt in ("xlsx", "csv"):
            return self.export(fmt, filename)
        return None
