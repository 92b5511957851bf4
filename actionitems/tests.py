from datetime import date
from unittest import mock

from django.test import TestCase
from django.urls import reverse

from core.testing import BackendTestMixin

from . import services


def labels(actions):
    return [action.label for action in actions]


class HodActionsTests(TestCase):
    def test_upload_report_only_for_package_type_zero(self):
        row = {"id": 11, "hodstatus": 5, "packagetype": 0}
        self.assertEqual(labels(services.hod_actions(row)), ["Upload Report"])

        row["packagetype"] = 2
        self.assertEqual(labels(services.hod_actions(row)), ["Perform Test"])

    def test_string_codes_are_read_as_numbers(self):
        row = {"id": 11, "hodstatus": "5", "packagetype": "0"}
        self.assertEqual(labels(services.hod_actions(row)), ["Upload Report"])

    def test_allot_stage_offers_allot_and_remove(self):
        actions = services.hod_actions({"id": 4, "hodstatus": 3})
        self.assertEqual(labels(actions), ["Allot Quantity", "Remove Item"])
        self.assertEqual(actions[1].method, "post")
        self.assertEqual(actions[1].url, reverse("actionitems:remove_item", args=[4]))

    def test_report_stages(self):
        expected = {
            4: "Assign Chemist",
            6: "View Draft Report",
            7: "Review By HOD",
            8: "Review By QA",
            9: "Generate Final Report",
        }
        for status, label in expected.items():
            with self.subTest(status=status):
                self.assertEqual(labels(services.hod_actions({"id": 1, "hodstatus": status})), [label])

    def test_hod_review_link_carries_request_id(self):
        action = services.hod_actions({"id": 9, "hodstatus": 7, "hodid": 321})[0]
        self.assertEqual(action.url, reverse("actionitems:test_report", args=[9]) + "?hid=321")

    def test_other_status_is_pending_without_link(self):
        action = services.hod_actions({"id": 1, "hodstatus": 2})[0]
        self.assertEqual(action.label, "Pending TRF Approval")
        self.assertIsNone(action.url)

    def test_row_without_id_has_no_links(self):
        self.assertEqual(labels(services.hod_actions({"hodstatus": 2})), ["Pending TRF Approval"])
        action = services.hod_actions({"hodstatus": 7, "hodid": 3})[0]
        self.assertEqual(action.label, "No ID")
        self.assertIsNone(action.url)


class TestEventActionsTests(TestCase):
    def event(self, **overrides):
        event = {
            "testeventdata_id": 77,
            "tid": 12,
            "trfid": 5,
            "status": 0,
            "witnesslock": 0,
            "start_time": "",
            "is_chemist": True,
            "has_documents": False,
        }
        event.update(overrides)
        return event

    def test_chemist_without_documents_starts_directly(self):
        actions = services.test_event_actions(self.event())
        self.assertEqual(labels(actions), ["Start", "Upload Document"])
        self.assertEqual(actions[0].method, "post")
        self.assertTrue(actions[0].url.startswith(reverse("actionitems:start_test", args=[77])))

    def test_chemist_with_documents_picks_a_date(self):
        actions = services.test_event_actions(self.event(has_documents=True))
        self.assertEqual(labels(actions), ["Start", "View Documents"])
        self.assertTrue(actions[0].url.startswith(reverse("actionitems:start_test_on_date", args=[77])))

    def test_other_users_wait(self):
        self.assertEqual(labels(services.test_event_actions(self.event(is_chemist=False))), ["Pending To start"])
        started = self.event(is_chemist=False, start_time="2024-01-01 10:00:00")
        self.assertEqual(labels(services.test_event_actions(started)), ["Pending Test Input"])

    def test_started_test_goes_to_input(self):
        actions = services.test_event_actions(self.event(status=24))
        self.assertEqual(labels(actions), ["Test Input"])
        self.assertIn("/testinput?hakuna=77", actions[0].url)

    def test_witness_lock(self):
        self.assertEqual(labels(services.test_event_actions(self.event(witnesslock=1))), ["Locked For Witness"])

    def test_completed_test(self):
        actions = services.test_event_actions(self.event(status=5))
        self.assertEqual(labels(actions), ["Test Completed", "View Raw Data"])
        self.assertIsNone(actions[0].url)


class ReportHelpersTests(TestCase):
    def test_result_compliance(self):
        self.assertEqual(services.result_compliance("4.5", "Max. 5"), "pass")
        self.assertEqual(services.result_compliance("6", "Max 5"), "fail")
        self.assertEqual(services.result_compliance("2", "Min. 3"), "fail")
        self.assertEqual(services.result_compliance("7", "5 to 10"), "pass")
        self.assertEqual(services.result_compliance("Absent", "Max 5"), "")

    def test_normalize_report_builds_remarks(self):
        report = services.normalize_report({
            "trf_product": {"lrn": "LRN-1", "ulr": "ULR-9"},
            "report_status": 7,
            "hod_remark": "Complies",
            "witness": "2",
            "witness_detail": "Mr. Rao",
            "results": [{"id": 1, "parameter": "Moisture", "result": "4", "specification": "Max 5"}],
        })
        self.assertEqual(report["remarks"], ["Complies", "The test was witnessed by Mr. Rao"])
        self.assertTrue(report["has_specs"])
        self.assertEqual(report["results"][0]["compliance"], "pass")

    def test_draft_flags(self):
        flags = services.draft_report_flags({
            "report_status": 6,
            "permissions": [180],
            "counts": {"left": 0, "done": 3, "deleted": 0, "total_params": 3, "left_my_department": 1},
        })
        self.assertTrue(flags["show_retest"])
        self.assertTrue(flags["show_full_hod"])
        self.assertFalse(flags["show_partial_hod"])
        self.assertFalse(flags["show_customer"])
        self.assertNotIn("retest_all", flags)


class AllotSampleViewTests(BackendTestMixin, TestCase):
    permissions = ["core.access_action_items"]

    def setUp(self):
        super().setUp()
        self.backend.add("GET", "/people/get-customer-type-list", {"Data": [{"id": 1, "name": "Private"}]})
        self.backend.add("GET", "/people/get-specific-purpose-list", {"data": [{"id": 2, "name": "Export"}]})

    def test_list_renders_rows(self):
        self.backend.add("GET", "/actionitem/get-allot-sample", {"data": [
            {"id": 101, "customer": "Acme Foods", "product": "Rice", "grade": None, "size": None},
        ]})
        response = self.client.get(reverse("actionitems:allot_sample_list"), {"ctype": "1"})
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Acme Foods")
        self.assertContains(response, "NA/NA")
        self.assertContains(response, reverse("actionitems:allot_sample_form", args=[101]))
        call = self.backend.calls("GET", "/actionitem/get-allot-sample")[0]
        self.assertEqual(self.backend.params(call), {"ctype": "1", "specificpurpose": ""})

    def test_failed_fetch_renders_empty_list(self):
        self.backend.add("GET", "/actionitem/get-allot-sample", {"message": "Server down"}, status=500)
        response = self.client.get(reverse("actionitems:allot_sample_list"))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Failed to load samples. Server down")
        self.assertContains(response, "No records found.")

    def test_unreachable_backend_is_reported(self):
        self.backend.fail("GET", "/actionitem/get-allot-sample")
        response = self.client.get(reverse("actionitems:allot_sample_list"))
        self.assertContains(response, "No response from server. Check your connection.")

    def allot_data(self):
        self.backend.add("GET", "/actionitem/get-allot-data/55", {
            "labs": [{"id": 3, "name": "Chemical"}],
            "persons": [{"id": 8, "name": "Asha"}],
            "received_items": [{"id": 1, "qid": 900, "qty_name": "Bag", "received": 10, "qleft": 4}],
        })

    def post_data(self, alloted, **extra):
        data = {
            "department": "3",
            "person": "8",
            "items-TOTAL_FORMS": "1",
            "items-INITIAL_FORMS": "1",
            "items-0-biscode": "BIS-7",
            "items-0-alloted": alloted,
        }
        data.update(extra)
        return data

    def test_allot_posts_arrays(self):
        self.allot_data()
        self.backend.add("POST", "/actionitem/allot-items", {"status": True})
        response = self.client.post(reverse("actionitems:allot_sample_form", args=[55]), self.post_data("2.5"))
        self.assertRedirects(response, reverse("actionitems:allot_sample_list"), fetch_redirect_response=False)
        body = self.backend.body(self.backend.calls("POST", "/actionitem/allot-items")[0])
        self.assertEqual(body, {
            "department": 3,
            "trfproduct": 55,
            "person": 8,
            "qid": [900],
            "biscode": ["BIS-7"],
            "alloted": [2.5],
        })

    def test_allot_more_than_left_is_rejected(self):
        self.allot_data()
        response = self.client.post(reverse("actionitems:allot_sample_form", args=[55]), self.post_data("5"))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Allot quantity exceeds left (4).")
        self.assertEqual(self.backend.calls("POST"), [])

    def test_posted_left_and_qid_are_ignored(self):
        self.allot_data()
        self.backend.add("POST", "/actionitem/allot-items", {"status": True})
        response = self.client.post(
            reverse("actionitems:allot_sample_form", args=[55]),
            self.post_data("50", **{"items-0-qleft": "999", "items-0-qid": "1"}),
        )
        self.assertContains(response, "Allot quantity exceeds left (4).")
        self.assertEqual(self.backend.calls("POST"), [])

        self.client.post(
            reverse("actionitems:allot_sample_form", args=[55]),
            self.post_data("1", **{"items-0-qid": "1"}),
        )
        body = self.backend.body(self.backend.calls("POST", "/actionitem/allot-items")[0])
        self.assertEqual(body["qid"], [900])

    def test_extra_posted_rows_are_rejected(self):
        self.allot_data()
        response = self.client.post(
            reverse("actionitems:allot_sample_form", args=[55]),
            self.post_data("1", **{"items-TOTAL_FORMS": "2", "items-1-biscode": "BIS-8", "items-1-alloted": "3"}),
        )
        self.assertContains(response, "The received items have changed. Please reload the page.")
        self.assertEqual(self.backend.calls("POST"), [])

    def test_lab_change_reloads_persons(self):
        self.allot_data()
        self.client.get(reverse("actionitems:allot_sample_form", args=[55]), {"department": "3"})
        call = self.backend.calls("GET", "/actionitem/get-allot-data/55")[0]
        self.assertEqual(self.backend.params(call), {"department": "3"})


class AcceptAndAssignViewTests(BackendTestMixin, TestCase):
    permissions = ["core.access_action_items"]

    def test_accept_posts_single_id(self):
        self.backend.add("POST", "/actionitem/accept-alloted-item", {"status": True})
        response = self.client.post(reverse("actionitems:accept_sample", args=[7]))
        self.assertRedirects(response, reverse("actionitems:accept_sample_list"), fetch_redirect_response=False)
        calls = self.backend.calls("POST", "/actionitem/accept-alloted-item")
        self.assertEqual(len(calls), 1)
        self.assertEqual(self.backend.body(calls[0]), {"id": 7})

    def chemist_detail(self):
        self.backend.add("GET", "/actionitem/get-assign-chemists-details-byid/30", {
            "grades": "A",
            "size": "1kg",
            "lrn": "LRN-30",
            "departments": [{"id": 2, "name": "Micro"}],
            "person": [{"id": 5, "firstname": "Ravi", "lastname": "K"}],
            "data": [
                {"id": 1, "parameter": 501, "parameter_name": "pH", "chemists": [{"id": 5, "name": "Ravi"}]},
                {"id": 2, "parameter": 502, "parameter_name": "Ash", "chemists": [{"id": 6, "name": "Mina"}]},
            ],
        })

    def chemist_post(self, **overrides):
        data = {
            "department": "2",
            "person": "5",
            "allo": "2024-03-01",
            "dued": "2024-03-10",
            "longTermTest": "no",
            "interim_no": "2024-03-12",
            "rows-TOTAL_FORMS": "2",
            "rows-INITIAL_FORMS": "2",
            "rows-0-parameter": "501",
            "rows-0-chemist": "",
            "rows-1-parameter": "502",
            "rows-1-chemist": "6",
            "rows-1-duedate": "2024-03-08",
        }
        data.update(overrides)
        return data

    def test_global_values_fill_blank_rows(self):
        self.chemist_detail()
        self.backend.add("POST", "/actionitem/add-assign-chemists", {"status": True})
        response = self.client.post(reverse("actionitems:assign_chemist_form", args=[30]), self.chemist_post())
        self.assertRedirects(response, reverse("actionitems:assign_chemist_list"), fetch_redirect_response=False)
        body = self.backend.body(self.backend.calls("POST", "/actionitem/add-assign-chemists")[0])
        self.assertEqual(body["chemist"], ["5", "6"])
        self.assertEqual(body["allotmentdate"], ["2024-03-01", "2024-03-01"])
        self.assertEqual(body["duedate"], ["2024-03-10", "2024-03-08"])
        self.assertEqual(body["parameter"], ["501", "502"])
        self.assertEqual(body["longTermTest"], "no")
        self.assertEqual(body["interim_no"], "2024-03-12")

    def test_long_term_yes_needs_both_dates(self):
        self.chemist_detail()
        response = self.client.post(
            reverse("actionitems:assign_chemist_form", args=[30]),
            self.chemist_post(longTermTest="yes", interim_yes="2024-03-12"),
        )
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Please fill Interim and Longterm report dates.")
        self.assertEqual(self.backend.calls("POST"), [])

    def test_row_without_chemist_is_rejected(self):
        self.chemist_detail()
        response = self.client.post(
            reverse("actionitems:assign_chemist_form", args=[30]),
            self.chemist_post(person=""),
        )
        self.assertContains(response, "Please select a Chemist.")


class PerformTestingViewTests(BackendTestMixin, TestCase):
    permissions = ["core.access_action_items"]

    def test_start_on_date_sends_display_format(self):
        self.backend.add("POST", "/actionitem/start-test", {"status": True})
        url = reverse("actionitems:start_test_on_date", args=[77]) + "?tid=12"
        response = self.client.post(url, {"start_date": "2024-03-05"})
        self.assertRedirects(response, reverse("actionitems:perform_testing_detail", args=[12]), fetch_redirect_response=False)
        body = self.backend.body(self.backend.calls("POST", "/actionitem/start-test")[0])
        self.assertEqual(body, {"id": 77, "enddate": "05/03/2024"})

    def test_direct_start_uses_today(self):
        self.backend.add("POST", "/actionitem/start-test", {"status": True})
        with mock.patch("core.dates.timezone.localdate", return_value=date(2024, 1, 9)):
            self.client.post(reverse("actionitems:start_test", args=[77]) + "?tid=12")
        body = self.backend.body(self.backend.calls("POST", "/actionitem/start-test")[0])
        self.assertEqual(body["enddate"], "09/01/2024")

    def test_upload_requires_a_file(self):
        url = reverse("actionitems:upload_documents", args=[12, 77])
        response = self.client.post(url, {"name": "Chromatogram", "trf": "5"})
        self.assertContains(response, "Please choose at least one file.")
        self.assertEqual(self.backend.calls("POST"), [])

    def test_lists_tolerate_rows_without_id(self):
        self.backend.add("GET", "/actionitem/get-perform-testing", {"data": [{"product": "Rice"}]})
        self.backend.add("GET", "/actionitem/get-perform-testing-byid", {"data": [{"parameter": "pH", "status": 0}]})
        response = self.client.get(reverse("actionitems:perform_testing_list"))
        self.assertContains(response, "No ID")
        response = self.client.get(reverse("actionitems:perform_testing_detail", args=[12]))
        self.assertContains(response, "No ID")

    def test_detail_lists_events_with_actions(self):
        self.backend.add("GET", "/actionitem/get-perform-testing-byid", {"data": [
            {"testeventdata_id": 77, "trfid": 5, "parameter": "pH", "status": 5, "tat": "01/01/2000"},
        ]})
        response = self.client.get(reverse("actionitems:perform_testing_detail", args=[12]))
        self.assertContains(response, "Test Completed")
        self.assertContains(response, "tat-overdue")


class ReviewViewTests(BackendTestMixin, TestCase):
    permissions = ["core.access_action_items"]

    def test_hod_list_renders_rows_without_id(self):
        self.backend.add("GET", "/actionitem/get-hod-request", {"data": [{"hodstatus": 2}, {"hodstatus": 6}]})
        response = self.client.get(reverse("actionitems:hod_review_list"))
        self.assertEqual(response.status_code, 200)
        self.assertContains(response, "Pending TRF Approval")
        self.assertContains(response, "No ID")

    def test_hod_list_defaults_to_pending(self):
        self.backend.add("GET", "/actionitem/get-hod-request", {"data": [{"id": 3, "hodstatus": 5, "packagetype": 0}]})
        response = self.client.get(reverse("actionitems:hod_review_list"))
        self.assertContains(response, "Upload Report")
        call = self.backend.calls("GET", "/actionitem/get-hod-request")[0]
        self.assertEqual(self.backend.params(call)["status"], "Pending")
        self.assertEqual(self.backend.calls("GET", "/people/get-customer-type-list"), [])
        self.assertNotIn("ctype", response.context["filter_form"].fields)

    def test_hod_list_customer_type_filter_needs_code(self):
        self.user.profile.permission_codes = "389"
        self.user.profile.save()
        self.backend.add("GET", "/people/get-customer-type-list", {"Data": [{"id": 1, "name": "Private"}]})
        self.backend.add("GET", "/actionitem/get-hod-request", {"data": []})
        response = self.client.get(reverse("actionitems:hod_review_list"), {"ctype": "1", "specificpurpose": "2"})
        self.assertIn("ctype", response.context["filter_form"].fields)
        self.assertNotIn("specificpurpose", response.context["filter_form"].fields)
        params = self.backend.params(self.backend.calls("GET", "/actionitem/get-hod-request")[0])
        self.assertEqual(params["ctype"], "1")
        self.assertEqual(params["specificpurpose"], "")

    def test_draft_report_pdf(self):
        self.backend.add("GET", "/actionitem/view-draft-report", {"data": {
            "trf_product": {"lrn": "LRN-1", "brn": "BRN-1"},
            "nabl": 1,
            "report_status": 7,
            "customer": {"name": "Acme Foods", "address": "Pune"},
            "results": [{"id": 1, "parameter": "pH", "unit": "-", "result": "7", "method": "IS 1"}],
            "signatories": [{"name": "Dr. Rao", "authorize_for": "Chemical"}],
        }})
        response = self.client.get(reverse("actionitems:draft_report_detail", args=[4]), {"format": "pdf", "letterhead": "0"})
        self.assertEqual(response["Content-Type"], "application/pdf")
        self.assertTrue(response.content.startswith(b"%PDF"))

    def test_submit_for_hod_review(self):
        self.backend.add("POST", "/actionitem/submit-hod-request", {"status": True})
        response = self.client.post(reverse("actionitems:submit_hod_request", args=[4]), {"partial": "1"})
        self.assertRedirects(response, reverse("actionitems:draft_report_list"), fetch_redirect_response=False)
        call = self.backend.calls("POST", "/actionitem/submit-hod-request")[0]
        self.assertEqual(self.backend.params(call), {"aid": "4"})

    def test_qa_approval_posts_hid(self):
        self.backend.add("POST", "/actionitem/approve-submit-ulr", {"status": True})
        self.client.post(reverse("actionitems:approve_ulr", args=[4]), {"hid": "49092"})
        body = self.backend.body(self.backend.calls("POST", "/actionitem/approve-submit-ulr")[0])
        self.assertEqual(body, {"hid": "49092"})


class PermissionTests(BackendTestMixin, TestCase):
    permissions = []

    def test_requires_action_item_access(self):
        response = self.client.get(reverse("actionitems:allot_sample_list"))
        self.assertEqual(response.status_code, 403)
