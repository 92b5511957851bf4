from datetime import date
from unittest import mock

from django.contrib.messages import get_messages
from django.test import TestCase
from django.urls import reverse

from core.testing import BackendTestMixin

from . import services
from .forms import FeedbackForm

LIST_PATH = "/testing/get-testing-trflist"


def labels(row):
    return [action.label for action in services.trf_actions(row)]


class TrfActionTests(TestCase):
    def test_new_trf(self):
        self.assertEqual(
            labels({"id": 1, "status": 0, "products": []}),
            ["Add Items", "Details", "Edit TRF", "Fill Feedback Form", "Delete"],
        )

    def test_sample_review_needs_products(self):
        self.assertNotIn("Sample Review", labels({"id": 1, "status": 1, "products": []}))
        self.assertIn("Sample Review", labels({"id": 1, "status": 1, "products": ["Cement"]}))

    def test_allotted_trf(self):
        found = labels({"id": 1, "status": 3, "products": ["Cement"]})
        self.assertIn("Allot Sample", found)
        self.assertIn("Assign Chemist", found)
        self.assertNotIn("Print Slip", found)

    def test_in_testing(self):
        found = labels({"id": 1, "status": "5", "products": ["Cement"]})
        self.assertIn("Perform Testing", found)
        self.assertIn("Print Slip", found)
        self.assertIn("Edit TRF", found)

    def test_reported_trf_cannot_be_edited(self):
        found = labels({"id": 1, "status": 10})
        self.assertIn("View Reports", found)
        self.assertNotIn("Edit TRF", found)

    def test_pending_approval_can_be_edited(self):
        found = labels({"id": 1, "status": 98})
        self.assertIn("Add Items", found)
        self.assertIn("Edit TRF", found)
        self.assertIn("Print Slip", found)

    def test_feedback_link(self):
        action = services.trf_actions({"id": 7, "status": 0})[-2]
        self.assertEqual(action.url, reverse("testing:feedback", args=[7]))

    def test_row_without_id_has_no_links(self):
        self.assertEqual(labels({"status": 5, "products": ["Cement"]}), ["No ID"])
        self.assertEqual(labels({"id": "abc", "status": 0}), ["No ID"])


class StatusLabelTests(TestCase):
    def test_known_and_unknown_codes(self):
        self.assertEqual(services.status_label(0), "Pending For Submit Review")
        self.assertEqual(services.status_label("9"), "Completed")
        self.assertEqual(services.status_label(7), "Status 7")


class FeedbackPayloadTests(TestCase):
    @mock.patch("core.dates.timezone.localdate", return_value=date(2024, 3, 5))
    def test_numbers_and_date(self, _localdate):
        form = FeedbackForm({
            "behavior": "4",
            "response": "5",
            "timelydelivry": "3",
            "qualityofreport": "5",
            "reliabilityofresult": "2",
            "qualityofservice": "1",
            "willyourecommend": "No",
            "willyourecommendreason": "Slow",
            "suggestion": "Faster reports",
        })
        self.assertTrue(form.is_valid(), form.errors)
        customer = {"customername": "Acme", "customerid": "12", "addressid": "3", "contactperson": {"id": "9"}}
        payload = services.feedback_payload(form.cleaned_data, customer, "55")
        self.assertEqual(payload["behavior"], 4)
        self.assertEqual(payload["qualityofservice"], 1)
        self.assertEqual(payload["customerid"], 12)
        self.assertEqual(payload["cperson"], 9)
        self.assertEqual(payload["inwardid"], 55)
        self.assertEqual(payload["type"], "Testing")
        self.assertEqual(payload["date"], "05/03/2024")

    def test_defaults(self):
        form = FeedbackForm()
        self.assertEqual(form["behavior"].initial, "5")
        self.assertEqual(form["willyourecommend"].initial, "Yes")


class TrfListViewTests(BackendTestMixin, TestCase):
    permissions = ["core.access_testing"]

    def setUp(self):
        super().setUp()
        self.backend.add("GET", "/people/get-customer-type-list", {"Data": [{"id": 1, "name": "Private"}]})
        self.backend.add("GET", "/people/get-specific-purpose-list", {"data": [{"id": 2, "name": "Export"}]})

    def test_list_with_filters(self):
        self.backend.add("GET", LIST_PATH, {"status": True, "data": [
            {"id": 5, "status": 0, "ctype": 1, "specificpurpose": 2, "customername": "Acme",
             "products": ["Cement", "Sand"], "date": "2024-03-05"},
        ]})
        response = self.client.get(reverse("testing:trf_list"), {
            "searchByFromdate": "2024-03-01",
            "searchByTodate": "2024-03-31",
            "ctype": "1",
            "searchstatus": "0",
        })
        self.assertContains(response, "Cement, Sand")
        self.assertContains(response, "Private")
        self.assertContains(response, "TRF-5")
        self.assertContains(response, "Pending For Submit Review")
        call = self.backend.calls("GET", LIST_PATH)[0]
        self.assertEqual(self.backend.params(call), {
            "searchByFromdate": "2024-03-01",
            "searchByTodate": "2024-03-31",
            "ctype": "1",
            "searchstatus": "0",
        })

    def test_unknown_type_falls_back(self):
        self.backend.add("GET", LIST_PATH, [{"id": 6, "status": 1, "ctype": 4, "specificpurpose": 2}])
        response = self.client.get(reverse("testing:trf_list"))
        self.assertContains(response, "Type 4")
        self.assertContains(response, "Export")

    def test_export_csv(self):
        self.backend.add("GET", LIST_PATH, {"status": True, "data": [{"id": 5, "status": 98}]})
        response = self.client.get(reverse("testing:trf_list"), {"export": "csv"})
        self.assertEqual(response["Content-Type"], "text/csv")
        self.assertIn("Pending For Approvals", response.content.decode())

    def test_bulk_delete_sends_one_request_per_id(self):
        self.backend.add("DELETE", "/testing/delete-trf", {"status": True})
        response = self.client.post(reverse("testing:trf_bulk_delete"), {"ids": ["5", "6"]})
        self.assertRedirects(response, reverse("testing:trf_list"), fetch_redirect_response=False)
        ids = [self.backend.params(r)["id"] for r in self.backend.calls("DELETE", "/testing/delete-trf")]
        self.assertEqual(ids, ["5", "6"])
        messages = [str(m) for m in get_messages(response.wsgi_request)]
        self.assertIn("2 TRF entries deleted successfully", messages)

    def test_bulk_delete_rejects_non_numeric_ids(self):
        response = self.client.post(reverse("testing:trf_bulk_delete"), {"ids": ["5", "6&id=7"]})
        self.assertRedirects(response, reverse("testing:trf_list"), fetch_redirect_response=False)
        self.assertEqual(self.backend.calls("DELETE"), [])
        messages = [str(m) for m in get_messages(response.wsgi_request)]
        self.assertIn("Invalid selection.", messages)

    def test_delete_failure_is_reported(self):
        self.backend.add("DELETE", "/testing/delete-trf", {"message": "TRF is locked"}, status=409)
        response = self.client.post(reverse("testing:trf_delete", args=[5]))
        messages = [str(m) for m in get_messages(response.wsgi_request)]
        self.assertIn("Failed to delete TRF 5: TRF is locked", messages)

    def test_requires_permission(self):
        self.user.user_permissions.clear()
        response = self.client.get(reverse("testing:trf_list"))
        self.assertEqual(response.status_code, 403)


class FeedbackViewTests(BackendTestMixin, TestCase):
    permissions = ["core.access_testing"]
    data_path = "/testing/get-feedback-data"

    def setUp(self):
        super().setUp()
        self.backend.add("GET", self.data_path, {"status": True, "data": {
            "customername": "Acme Labs",
            "customeraddress": "Plot 4",
            "customerid": 12,
            "addressid": 3,
            "contactperson": {"id": 9, "name": "Ravi", "department": "QA", "designation": "Manager"},
        }})

    def post_data(self, **overrides):
        data = {name: "5" for name, _ in services.RATING_FIELDS}
        data.update({
            "willyourecommend": "Yes",
            "willyourecommendreason": "Good service",
            "suggestion": "None",
            "contactpersonname": "Ravi",
        })
        data.update(overrides)
        return data

    def test_form_is_prefilled(self):
        response = self.client.get(reverse("testing:feedback", args=[55]))
        self.assertContains(response, "Acme Labs")
        self.assertEqual(response.context["form"]["contactpersonname"].value(), "Ravi")
        call = self.backend.calls("GET", self.data_path)[0]
        self.assertEqual(self.backend.params(call), {"type": "Testing", "id": "55"})

    def test_submit(self):
        self.backend.add("POST", "/testing/send-feedback-form", {"status": True})
        response = self.client.post(reverse("testing:feedback", args=[55]), self.post_data())
        self.assertRedirects(response, reverse("testing:trf_list"), fetch_redirect_response=False)
        body = self.backend.body(self.backend.calls("POST", "/testing/send-feedback-form")[0])
        self.assertEqual(body["behavior"], 5)
        self.assertEqual(body["inwardid"], 55)
        self.assertEqual(body["addressid"], 3)
        self.assertEqual(body["customername"], "Acme Labs")

    def test_reason_and_suggestion_required(self):
        response = self.client.post(
            reverse("testing:feedback", args=[55]),
            self.post_data(willyourecommendreason="  ", suggestion=""),
        )
        self.assertContains(response, "Please fill in the &#x27;Why&#x27; reason")
        self.assertContains(response, "Please fill in Suggestions/Comments")
        self.assertEqual(self.backend.calls("POST"), [])

    def test_backend_rejection_stays_on_form(self):
        self.backend.add("POST", "/testing/send-feedback-form", {"status": False, "message": "Already submitted"})
        response = self.client.post(reverse("testing:feedback", args=[55]), self.post_data())
        self.assertContains(response, "Already submitted")
