from django.contrib.messages import get_messages
from django.test import TestCase
from django.urls import reverse

from core.services import BackendClient
from core.testing import BackendTestMixin

from . import services
from .forms import CalibPointForm


class ComputeErrorTests(TestCase):
    def test_uuc_minus_master(self):
        self.assertEqual(services.compute_error("10.256", "10"), "0.26")
        self.assertEqual(services.compute_error("9.5", "10"), "-0.50")

    def test_non_numeric_operands(self):
        self.assertIsNone(services.compute_error("", "10"))
        self.assertIsNone(services.compute_error("abc", "1"))

    def test_form_fills_error(self):
        form = CalibPointForm({"parameter": "Temp", "setpoint": "100", "uuc": "100.4", "master": "100"})
        self.assertTrue(form.is_valid())
        self.assertEqual(form.cleaned_data["error"], "0.40")

    def test_form_requires_parameter_and_setpoint(self):
        form = CalibPointForm({"uuc": "1"})
        self.assertFalse(form.is_valid())
        self.assertIn("parameter", form.errors)
        self.assertIn("setpoint", form.errors)


class PriceViewTests(BackendTestMixin, TestCase):
    permissions = ["core.access_calibration"]

    def prices(self):
        self.backend.add("GET", "/calibrationoperations/get-calibrationprice-byid/268", {"status": True, "data": [
            {"id": 1, "packagename": "Basic", "location": "Lab", "rate": 500},
            {"id": 2, "packagename": "Premium", "location": "Site", "rate": 1500},
        ]})

    def test_lookup_redirects_to_prices(self):
        response = self.client.get(reverse("calibration:price_lookup"), {"instrument_id": "268"})
        self.assertRedirects(response, reverse("calibration:price_list", args=[268]), fetch_redirect_response=False)

    def test_column_filter(self):
        self.prices()
        response = self.client.get(reverse("calibration:price_list", args=[268]), {"f_location": "site"})
        self.assertContains(response, "Premium")
        self.assertNotContains(response, "Basic")

    def test_bulk_delete_sends_one_request_per_id(self):
        self.backend.add("DELETE", "/calibrationoperations/delete-Calibration-price/1", {"status": True})
        self.backend.add("DELETE", "/calibrationoperations/delete-Calibration-price/2", {"message": "In use"}, status=409)
        response = self.client.post(reverse("calibration:price_bulk_delete", args=[268]), {"ids": ["1", "2"]})
        self.assertRedirects(response, reverse("calibration:price_list", args=[268]), fetch_redirect_response=False)
        self.assertEqual(len(self.backend.calls("DELETE")), 2)
        messages = [str(m) for m in get_messages(response.wsgi_request)]
        self.assertIn("Deleted 1 calibration price(s).", messages)
        self.assertIn("Delete failed for 2: In use", messages)

    def test_bulk_delete_needs_a_selection(self):
        self.client.post(reverse("calibration:price_bulk_delete", args=[268]))
        self.assertEqual(self.backend.calls("DELETE"), [])

    def test_bulk_delete_rejects_non_numeric_ids(self):
        response = self.client.post(
            reverse("calibration:price_bulk_delete", args=[268]),
            {"ids": ["1", "abc", "5/../../master/x"]},
        )
        self.assertRedirects(response, reverse("calibration:price_list", args=[268]), fetch_redirect_response=False)
        self.assertEqual(self.backend.calls("DELETE"), [])
        messages = [str(m) for m in get_messages(response.wsgi_request)]
        self.assertIn("Invalid selection.", messages)

    def test_row_without_id_renders(self):
        self.backend.add("GET", "/calibrationoperations/get-calibrationprice-byid/268", {"data": [
            {"packagename": "Orphan", "location": "Lab", "rate": 100},
        ]})
        response = self.client.get(reverse("calibration:price_list", args=[268]))
        self.assertContains(response, "Orphan")
        self.assertContains(response, "No ID")


class PointViewTests(BackendTestMixin, TestCase):
    permissions = ["core.access_calibration"]
    points_path = "/calibrationoperations/get-calibpoint-byid_withmatrixid/268/12"

    def test_ids_from_existing_points(self):
        self.backend.add("GET", self.points_path, {"status": True, "data": [{"id": 5, "instid": 268, "matrixid": 44}]})
        ids = services.resolve_point_ids(self.client_backend(), 268, 12)
        self.assertEqual(ids, {"instid": 268, "matrixid": 12, "pricematrixid": 44})
        self.assertEqual(len(self.backend.requests), 1)

    def test_fallback_lookups(self):
        self.backend.add("GET", self.points_path, {"status": True, "data": []})
        self.backend.add("GET", "/calibrationoperations/get-instrument-bypriceid/268", {"data": [{"instid": 7}]})
        self.backend.fail("GET", "/calibrationoperations/get-pricematrix-byid/12")
        ids = services.resolve_point_ids(self.client_backend(), 268, 12)
        self.assertEqual(ids, {"instid": 7, "matrixid": 12, "pricematrixid": 12})

    def test_missing_instrument_is_left_unresolved(self):
        ids = services.resolve_point_ids(self.client_backend(), 268, 12)
        self.assertIsNone(ids["instid"])
        self.assertFalse(services.ids_complete(ids))

    def client_backend(self):
        return BackendClient(token="token-123")

    def test_edit_posts_update(self):
        self.backend.add("GET", self.points_path, {"status": True, "data": [{"id": 5, "instid": 268, "matrixid": 44}]})
        self.backend.add("GET", "/calibrationoperations/get-calibpoint-byid/5", {"data": [
            {"id": 5, "parameter": "Temp", "setpoint": "100"},
        ]})
        self.backend.add("POST", "/calibrationoperations/update-calibpoint", {"status": True})
        response = self.client.post(reverse("calibration:point_edit", args=[268, 12, 5]), {
            "parameter": "Temp",
            "setpoint": "100",
            "uuc": "100.5",
            "master": "100",
        })
        self.assertRedirects(response, reverse("calibration:points_list", args=[268, 12]), fetch_redirect_response=False)
        body = self.backend.body(self.backend.calls("POST", "/calibrationoperations/update-calibpoint")[0])
        self.assertEqual(body, {
            "id": 5,
            "parameter": "Temp",
            "specification": "",
            "setpoint": "100",
            "uuc": "100.5",
            "master": "100",
            "error": "0.50",
            "remark": "",
            "instid": 268,
            "matrixid": 12,
            "pricematrixid": 44,
        })

    def test_edit_refuses_without_instrument(self):
        self.backend.add("GET", "/calibrationoperations/get-calibpoint-byid/5", {"data": [{"id": 5}]})
        response = self.client.post(reverse("calibration:point_edit", args=[268, 12, 5]), {
            "parameter": "Temp",
            "setpoint": "100",
        })
        self.assertContains(response, "Missing required IDs. Please try again.")
        self.assertEqual(self.backend.calls("POST"), [])

    def add_data(self, **rows):
        data = {"points-TOTAL_FORMS": "2", "points-INITIAL_FORMS": "2"}
        data.update(rows)
        return data

    def test_add_sends_arrays(self):
        self.backend.add("GET", self.points_path, {"status": True, "data": [{"id": 5, "instid": 268, "matrixid": 44}]})
        self.backend.add("POST", "/calibrationoperations/add-new-calibpoint", {"status": True})
        response = self.client.post(reverse("calibration:point_add", args=[268, 12]), self.add_data(**{
            "points-0-parameter": "Temp",
            "points-0-setpoint": "50",
            "points-1-parameter": "Temp",
            "points-1-setpoint": "100",
            "points-1-uuc": "99",
            "points-1-master": "100",
        }))
        self.assertRedirects(response, reverse("calibration:points_list", args=[268, 12]), fetch_redirect_response=False)
        body = self.backend.body(self.backend.calls("POST", "/calibrationoperations/add-new-calibpoint")[0])
        self.assertEqual(body["setpoint"], ["50", "100"])
        self.assertEqual(body["error"], ["", "-1.00"])
        self.assertEqual(body["pricematrixid"], 44)

    def test_add_skips_removed_rows(self):
        self.backend.add("GET", self.points_path, {"status": True, "data": [{"id": 5, "instid": 268, "matrixid": 44}]})
        self.backend.add("POST", "/calibrationoperations/add-new-calibpoint", {"status": True})
        self.client.post(reverse("calibration:point_add", args=[268, 12]), self.add_data(**{
            "points-0-parameter": "Temp",
            "points-0-setpoint": "50",
            "points-1-DELETE": "on",
        }))
        body = self.backend.body(self.backend.calls("POST", "/calibrationoperations/add-new-calibpoint")[0])
        self.assertEqual(body["parameter"], ["Temp"])

    def test_add_requires_a_row(self):
        response = self.client.post(reverse("calibration:point_add", args=[268, 12]), self.add_data(**{
            "points-0-DELETE": "on",
            "points-1-DELETE": "on",
        }))
        self.assertContains(response, "At least one row is required")

    def test_add_row_keeps_values(self):
        response = self.client.post(reverse("calibration:point_add", args=[268, 12]), {
            "points-TOTAL_FORMS": "1",
            "points-INITIAL_FORMS": "1",
            "points-0-parameter": "Pressure",
            "add_row": "1",
        })
        self.assertEqual(response.context["formset"].total_form_count(), 2)
        self.assertContains(response, 'value="Pressure"')
        self.assertEqual(self.backend.calls("POST"), [])
