from datetime import date
from io import StringIO

import httpx
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Group, Permission
from django.core.management import call_command
from django.core.management.base import CommandError
from django.test import RequestFactory, TestCase, override_settings
from django.urls import reverse

from .dates import format_timestamp, is_tat_overdue, parse_iso, to_display, to_iso
from .models import UserProfile
from .services import (
    BackendClient,
    BackendError,
    delete_each,
    ensure_success,
    error_message,
    unwrap,
    unwrap_list,
)
from .shortcuts import posted_ids
from .tables import Column, DataTable, load_prefs, row_id, save_prefs
from .testing import BackendTestMixin


class DateTests(TestCase):
    def test_display_and_iso(self):
        self.assertEqual(to_display("2024-03-05"), "05/03/2024")
        self.assertEqual(to_iso("05/03/2024"), "2024-03-05")
        self.assertEqual(to_display(""), "")
        self.assertEqual(to_iso("2024-03-05"), "")

    def test_parse_iso_takes_date_part(self):
        self.assertEqual(parse_iso("2024-03-05 10:11:12"), date(2024, 3, 5))
        self.assertIsNone(parse_iso("0000-00-00"))
        self.assertIsNone(parse_iso(None))

    def test_tat_overdue_on_the_day(self):
        today = date(2024, 3, 5)
        self.assertTrue(is_tat_overdue("05/03/2024", today=today))
        self.assertTrue(is_tat_overdue("01/03/2024", today=today))
        self.assertFalse(is_tat_overdue("06/03/2024", today=today))
        self.assertFalse(is_tat_overdue("", today=today))

    def test_format_timestamp(self):
        self.assertEqual(format_timestamp("2024-03-05T14:30:00Z"), "05/03/2024 14:30:00")
        self.assertEqual(format_timestamp("soon"), "soon")


class EnvelopeTests(TestCase):
    def test_unwrap(self):
        self.assertEqual(unwrap({"data": [1]}), [1])
        self.assertEqual(unwrap({"Data": [2]}), [2])
        self.assertEqual(unwrap({"rows": 3}), {"rows": 3})
        self.assertEqual(unwrap_list({"data": {"id": 1}}), [])
        self.assertEqual(unwrap_list([4]), [4])

    def test_ensure_success(self):
        self.assertEqual(ensure_success({"status": True}), {"status": True})
        with self.assertRaisesMessage(BackendError, "Nope"):
            ensure_success({"status": False, "message": "Nope"})
        with self.assertRaisesMessage(BackendError, "Save failed"):
            ensure_success({"status": "false"}, "Save failed")

    def test_error_message_prefers_error_then_errors(self):
        self.assertEqual(error_message(httpx.Response(400, json={"error": "bad", "message": "x"})), "bad")
        response = httpx.Response(422, json={"errors": {"name": ["required", "short"]}})
        self.assertEqual(error_message(response), "name: required, short")
        self.assertEqual(error_message(httpx.Response(500, text="oops")), "HTTP 500")


class BackendClientTests(BackendTestMixin, TestCase):
    def test_sends_bearer_token(self):
        self.backend.add("GET", "/ping", {"status": True})
        BackendClient(token="abc").get("/ping")
        self.assertEqual(self.backend.requests[0].headers["Authorization"], "Bearer abc")

    def test_unreachable(self):
        self.backend.fail("GET", "/ping")
        with self.assertRaisesMessage(BackendError, "No response from server"):
            BackendClient().get("/ping")

    def test_delete_each_keeps_going(self):
        self.backend.add("DELETE", "/items/1", {"status": True})
        self.backend.add("DELETE", "/items/3", {"status": True})
        client = BackendClient()
        done, failures = delete_each([1, 2, 3], lambda pk: client.delete(f"/items/{pk}"))
        self.assertEqual(done, [1, 3])
        self.assertEqual(failures, [(2, "No route for DELETE /items/2")])
        self.assertEqual(len(self.backend.calls("DELETE")), 3)


class DataTableTests(TestCase):
    rows = [
        {"id": 1, "name": "Cement", "qty": "10"},
        {"id": 2, "name": "Sand", "qty": "9"},
        {"id": 3, "name": "Cement Blend", "qty": "100"},
    ]
    columns = [Column("name", "Name", hideable=False), Column("qty", "Qty")]

    def table(self, query=None, session=None, **kwargs):
        request = RequestFactory().get("/", query or {})
        request.session = session if session is not None else {}
        return DataTable(request, self.rows, self.columns, "things", **kwargs)

    def test_global_filter_and_numeric_sort(self):
        table = self.table({"q": "cement", "sort": "qty", "dir": "desc"})
        self.assertEqual([row["id"] for row in table.rows], [3, 1])

    def test_column_filter(self):
        table = self.table({"f_qty": "10"})
        self.assertEqual([row["id"] for row in table.rows], [1, 3])

    def test_prefs_hide_and_pin(self):
        session = {}
        save_prefs(session, "things", hidden=["qty", "name"], pinned=["qty"])
        table = self.table(session=session)
        # required columns cannot be hidden
        self.assertEqual([c.key for c in table.visible_columns], ["name"])
        self.assertEqual(load_prefs(session, "things")["pinned"], ["qty"])

    @override_settings(LABDESK_PAGE_SIZE=2)
    def test_pagination(self):
        table = self.table({"page": "2"})
        self.assertEqual([row.pk for row in table.page_rows], [3])

    def test_export_xlsx(self):
        response = self.table({"export": "xlsx"}).export_response("things")
        self.assertIn("spreadsheetml", response["Content-Type"])
        self.assertIn("things.xlsx", response["Content-Disposition"])

    def test_row_id(self):
        self.assertEqual(row_id({"id": "7"}), 7)
        self.assertIsNone(row_id({"id": None}))
        self.assertIsNone(row_id({"documentid": "x"}, "documentid"))


class PostedIdsTests(TestCase):
    def test_numeric_ids_only(self):
        factory = RequestFactory()
        self.assertEqual(posted_ids(factory.post("/", {"ids": ["1", " 2 "]})), ["1", "2"])
        self.assertEqual(posted_ids(factory.post("/")), [])
        self.assertIsNone(posted_ids(factory.post("/", {"ids": ["1", "5/../x"]})))
        self.assertIsNone(posted_ids(factory.post("/", {"ids": ["\u00b2"]})))


class CoreViewTests(TestCase):
    def setUp(self):
        self.user = get_user_model().objects.create_user(username="labuser", password="pass")
        self.client.force_login(self.user)

    def test_home_lists_permitted_modules(self):
        self.user.user_permissions.set(Permission.objects.filter(codename="access_calibration"))
        response = self.client.get(reverse("core:home"))
        self.assertContains(response, "Calibration Prices")
        self.assertNotContains(response, "Master Documents")

    def test_table_prefs_saved_in_session(self):
        response = self.client.post(reverse("core:table_prefs"), {
            "table_key": "things",
            "columns": ["name", "qty"],
            "visible": ["name"],
            "pinned": ["name"],
            "next": "/calibration/prices/",
        })
        self.assertRedirects(response, "/calibration/prices/", fetch_redirect_response=False)
        self.assertEqual(self.client.session["column-visibility-things"], {"hidden": ["qty"], "pinned": ["name"]})

    def test_table_prefs_ignores_offsite_next(self):
        response = self.client.post(reverse("core:table_prefs"), {
            "table_key": "things",
            "next": "https://evil.example.com/",
        })
        self.assertRedirects(response, "/", fetch_redirect_response=False)

    def test_profile_validates_codes(self):
        response = self.client.post(reverse("core:profile"), {
            "employee_id": "42",
            "job_title": "Chemist",
            "api_token": "t",
            "permission_codes": "389, abc",
        })
        self.assertContains(response, "Permission codes must be numbers: abc")
        self.client.post(reverse("core:profile"), {
            "employee_id": "42",
            "job_title": "Chemist",
            "api_token": "t",
            "permission_codes": "389, 390",
        })
        profile = UserProfile.objects.get(user=self.user)
        self.assertTrue(profile.has_code(390))


class CommandTests(BackendTestMixin, TestCase):
    def test_seed_roles(self):
        out = StringIO()
        call_command("seed_roles", stdout=out)
        self.assertIn("Ensured group HOD", out.getvalue())
        perms = set(Group.objects.get(name="Calibration").permissions.values_list("codename", flat=True))
        self.assertEqual(perms, {"view_dashboard", "access_calibration"})

    def test_check_backend(self):
        self.backend.add("GET", "/actionitem/get-allot-sample", {"data": [{"id": 1}]})
        out = StringIO()
        call_command("check_backend", stdout=out)
        self.assertIn("'data' envelope (1 rows)", out.getvalue())

    def test_check_backend_failure(self):
        self.backend.fail("GET", "/actionitem/get-allot-sample")
        with self.assertRaises(CommandError):
            call_command("check_backend", stdout=StringIO())
