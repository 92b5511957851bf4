from django.contrib.messages import get_messages
from django.core.files.uploadedfile import SimpleUploadedFile
from django.test import TestCase, override_settings
from django.urls import reverse

from core.testing import BackendTestMixin

from . import services
from .forms import TrainingModuleForm

LIST_PATH = "/master/view-document-module-list"


def doc(**overrides):
    row = {
        "id": 10,
        "name": "Sampling SOP",
        "status": 0,
        "approval_status": 0,
        "obsoletestatus": 0,
        "reviewedby": 42,
        "approvedby": 7,
    }
    row.update(overrides)
    return row


class DocumentActionTests(TestCase):
    def test_reviewer_sees_review(self):
        labels = [a.label for a in services.document_actions(doc(), "42")]
        self.assertEqual(labels, ["View", "Delete", "Resume", "Review"])

    def test_other_employee_cannot_review(self):
        labels = [a.label for a in services.document_actions(doc(), "99")]
        self.assertEqual(labels, ["View", "Delete", "Resume"])

    def test_approver_sees_approve(self):
        labels = [a.label for a in services.document_actions(doc(status=1), "7")]
        self.assertEqual(labels, ["View", "Delete", "Resume", "Approve"])

    def test_active_document_is_view_only(self):
        labels = [a.label for a in services.document_actions(doc(status=2, approval_status=1), "42")]
        self.assertEqual(labels, ["View"])

    def test_string_status_codes(self):
        labels = [a.label for a in services.document_actions(doc(status="-1", approval_status="0"), "")]
        self.assertEqual(labels, ["View", "Delete", "Resume"])

    def test_view_opens_legacy_page(self):
        view = services.document_actions(doc(), "42")[0]
        self.assertTrue(view.url.endswith("/textmasterdoument.php?docID=10"))

    def test_row_without_id_has_no_links(self):
        self.assertEqual([a.label for a in services.document_actions(doc(id=None), "42")], ["No ID"])


class DocumentPayloadTests(TestCase):
    def cleaned(self, **overrides):
        from datetime import date
        data = {
            "documentType": "1",
            "category": "2",
            "orientation": "vertical",
            "letterHead": "None",
            "name": "Sampling SOP",
            "documentNo": "SOP-01",
            "department": "3",
            "issueDate": date(2024, 1, 2),
            "effectiveDate": date(2024, 2, 1),
            "reviewBefore": date(2025, 2, 1),
            "revDate": "NA",
            "deadlineInDays": 15,
            "reviewedBy": "42",
            "approvedBy": "7",
            "reviewedOn": None,
            "isTrainingRequired": "Yes",
        }
        data.update(overrides)
        return data

    def test_na_revision_date_becomes_effective_date(self):
        payload = services.document_payload(self.cleaned(), services.SUBMIT_STATUS)
        self.assertEqual(payload["revdate"], "01/02/2024")
        self.assertEqual(payload["effdate"], "01/02/2024")
        self.assertEqual(payload["issuedate"], "02/01/2024")
        self.assertEqual(payload["reviewed_on"], "01/02/2025")
        self.assertEqual(payload["status"], 0)
        self.assertEqual(payload["documenttype"], 1)
        self.assertEqual(payload["deadline"], 15)


class TrainingFormTests(TestCase):
    def data(self):
        return {"modulename": "Sampling SOP", "frequency": "2", "repeatcycle": "Yearly", "time": "30"}

    def test_rejects_non_image(self):
        upload = SimpleUploadedFile("notes.pdf", b"%PDF", content_type="application/pdf")
        form = TrainingModuleForm(self.data(), {"file": upload})
        self.assertFalse(form.is_valid())
        self.assertIn("Please select a valid image file (JPG, PNG, GIF)", form.errors["file"])

    @override_settings(LABDESK_MAX_UPLOAD_BYTES=10)
    def test_rejects_large_image(self):
        upload = SimpleUploadedFile("photo.png", b"x" * 11, content_type="image/png")
        form = TrainingModuleForm(self.data(), {"file": upload})
        self.assertFalse(form.is_valid())
        self.assertIn("File size should be less than 5MB", form.errors["file"])

    def test_requires_frequency(self):
        data = self.data()
        data["frequency"] = ""
        form = TrainingModuleForm(data)
        self.assertFalse(form.is_valid())
        self.assertIn("Please select frequency", form.errors["frequency"])


class DocumentViewTests(BackendTestMixin, TestCase):
    permissions = ["core.access_master_data"]

    def test_list_passes_search_params(self):
        self.backend.add("GET", LIST_PATH, {"status": True, "data": [doc(added_on="2024-03-05 14:30:00")]})
        response = self.client.get(reverse("masterdata:document_list"),
                                   {"type": "pending", "fieldType": "name", "fieldVal": " SOP "})
        self.assertContains(response, "05/03/2024 14:30:00")
        self.assertContains(response, reverse("masterdata:document_review", args=[10]))
        call = self.backend.calls("GET", LIST_PATH)[0]
        self.assertEqual(self.backend.params(call), {"type": "pending", "fieldType": "name", "fieldVal": "SOP"})

    def test_blank_search_sends_type_only(self):
        self.backend.add("GET", LIST_PATH, {"status": True, "data": []})
        self.client.get(reverse("masterdata:document_list"))
        call = self.backend.calls("GET", LIST_PATH)[0]
        self.assertEqual(self.backend.params(call), {"type": "active"})

    def test_bulk_delete_blocked_by_active_row(self):
        self.backend.add("GET", LIST_PATH, {"status": True, "data": [doc(id=1), doc(id=2, status=2)]})
        response = self.client.post(reverse("masterdata:document_bulk_delete"), {
            "ids": ["1", "2"],
            "next": reverse("masterdata:document_list") + "?type=pending",
        })
        self.assertRedirects(response, reverse("masterdata:document_list") + "?type=pending",
                             fetch_redirect_response=False)
        self.assertEqual(self.backend.calls("POST"), [])
        call = self.backend.calls("GET", LIST_PATH)[0]
        self.assertEqual(self.backend.params(call)["type"], "pending")

    def test_bulk_delete_posts_each_id(self):
        self.backend.add("GET", LIST_PATH, {"status": True, "data": [doc(id=1), doc(id=2, status=-1)]})
        self.backend.add("POST", "/deletemasterdocument.php", {"status": True})
        response = self.client.post(reverse("masterdata:document_bulk_delete"), {"ids": ["1", "2"]})
        bodies = [self.backend.body(r) for r in self.backend.calls("POST", "/deletemasterdocument.php")]
        self.assertEqual(bodies, [{"id": 1}, {"id": 2}])
        messages = [str(m) for m in get_messages(response.wsgi_request)]
        self.assertIn("2 document(s) deleted successfully", messages)

    def test_bulk_delete_rejects_non_numeric_ids(self):
        response = self.client.post(reverse("masterdata:document_bulk_delete"), {"ids": ["1", "../x"]})
        self.assertEqual(self.backend.requests, [])
        messages = [str(m) for m in get_messages(response.wsgi_request)]
        self.assertIn("Invalid selection.", messages)

    def test_approve_sends_iso_date(self):
        self.backend.add("POST", "/approvedocumentnew.php", {"status": True})
        self.client.post(reverse("masterdata:document_approve", args=[10]), {"effectiveDate": "2024-06-01"})
        body = self.backend.body(self.backend.calls("POST", "/approvedocumentnew.php")[0])
        self.assertEqual(body, {"id": 10, "effectiveDate": "2024-06-01"})

    def test_approve_rejects_other_formats(self):
        response = self.client.post(reverse("masterdata:document_approve", args=[10]), {"effectiveDate": "01/06/2024"})
        self.assertContains(response, "Invalid date format. Please use YYYY-MM-DD")
        self.assertEqual(self.backend.calls("POST"), [])

    def dropdowns(self):
        self.backend.add("GET", "/master/get-typeof-masterdocument", {"status": True, "data": [{"id": 1, "name": "SOP"}]})
        self.backend.add("GET", "/master/get-document-category", {"status": True, "data": [{"id": 2, "name": "Quality"}]})
        self.backend.add("GET", "/hrm/department-list", {"status": True, "data": [{"id": 3, "name": "Chemical"}]})
        self.backend.add("GET", "/approved-by", {"status": True, "data": [
            {"id": 42, "firstname": "Asha", "lastname": "Rao"},
            {"id": 7, "prefix": "Dr.", "firstname": "Vikram", "lastname": "Iyer"},
        ]})
        self.backend.add("GET", "/get-company-info", {"status": True, "data": {"company": {"name": "Acme Labs"}}})

    def document_post(self, **overrides):
        data = {
            "documentType": "1",
            "category": "2",
            "orientation": "vertical",
            "letterHead": "Acme Labs",
            "name": "Sampling SOP",
            "documentNo": "SOP-01",
            "department": "3",
            "issueNo": "01",
            "issueDate": "2024-01-02",
            "effectiveDate": "2024-02-01",
            "reviewBefore": "2025-02-01",
            "revNo": "00",
            "revDate": "NA",
            "header": "For Standard Operating Procedure",
            "footer": "Standard Operating Procedure",
            "deadlineInDays": "15",
            "reviewedBy": "42",
            "approvedBy": "7",
            "isTrainingRequired": "Yes",
        }
        data.update(overrides)
        return data

    def test_submit_with_training_goes_to_module_editor(self):
        self.dropdowns()
        self.backend.add("POST", "/master/add-master-document", {"status": True, "document_id": 88})
        response = self.client.post(reverse("masterdata:document_add"), self.document_post())
        self.assertRedirects(response, reverse("masterdata:training_edit", args=[88]), fetch_redirect_response=False)
        body = self.backend.body(self.backend.calls("POST", "/master/add-master-document")[0])
        self.assertEqual(body["status"], 0)
        self.assertEqual(body["letterhead"], "Acme Labs")
        self.assertEqual(body["revdate"], "01/02/2024")

    def test_save_draft(self):
        self.dropdowns()
        self.backend.add("POST", "/master/add-master-document", {"status": True, "document_id": 88})
        response = self.client.post(reverse("masterdata:document_add"), self.document_post(save_draft="1"))
        self.assertRedirects(response, reverse("masterdata:document_list") + "?type=saved",
                             fetch_redirect_response=False)
        body = self.backend.body(self.backend.calls("POST", "/master/add-master-document")[0])
        self.assertEqual(body["status"], -1)

    def test_missing_required_fields(self):
        self.dropdowns()
        response = self.client.post(reverse("masterdata:document_add"), self.document_post(name="", approvedBy=""))
        self.assertContains(response, "Please fill all required fields")
        self.assertContains(response, "This field is required")
        self.assertEqual(self.backend.calls("POST"), [])

    def test_resume_prefills_form(self):
        self.dropdowns()
        self.backend.add("GET", "/master/resume-document/10", {"status": True, "data": {"document": {
            "documenttype": 1,
            "name": "Sampling SOP",
            "procedureno": "SOP-01",
            "effdate": "2024-02-01",
            "revdate": "0000-00-00",
        }}})
        response = self.client.get(reverse("masterdata:document_resume", args=[10]))
        form = response.context["form"]
        self.assertEqual(form.initial["documentNo"], "SOP-01")
        self.assertEqual(str(form.initial["effectiveDate"]), "2024-02-01")
        self.assertEqual(form.initial["revDate"], "NA")


class TrainingViewTests(BackendTestMixin, TestCase):
    permissions = ["core.access_master_data"]
    module_path = "/master/get-training-module-byid/88"

    def module(self):
        self.backend.add("GET", self.module_path, {
            "status": True,
            "document": {"name": "Sampling SOP", "code": "SOP-01"},
            "module": {"frequency": "2", "repeatcycle": "Yearly", "time": "30"},
            "questions": [{"id": 5, "question": "What is a sample?", "ans": "opt2"}],
        })

    def test_edit_page_lists_questions(self):
        self.module()
        response = self.client.get(reverse("masterdata:training_edit", args=[88]))
        self.assertContains(response, "What is a sample?")
        self.assertEqual(response.context["form"].initial["modulename"], "Sampling SOP")

    def test_submit_with_new_question(self):
        self.module()
        self.backend.add("POST", "/master/add-training-module", {"status": True})
        response = self.client.post(reverse("masterdata:training_edit", args=[88]), {
            "modulename": "Sampling SOP",
            "frequency": "2",
            "repeatcycle": "Yearly",
            "time": "30",
            "questions-TOTAL_FORMS": "1",
            "questions-INITIAL_FORMS": "1",
            "questions-0-question": "Why sample?",
            "questions-0-opt1": "A",
            "questions-0-opt2": "B",
            "questions-0-opt3": "C",
            "questions-0-opt4": "D",
            "questions-0-ans": "opt3",
            "questions-0-expaination": "Because.",
        })
        self.assertRedirects(response, reverse("masterdata:training_edit", args=[88]), fetch_redirect_response=False)
        request = self.backend.calls("POST", "/master/add-training-module")[0]
        body = request.content.decode()
        self.assertIn("question%5B%5D=Why+sample%3F", body)
        self.assertIn("ans%5B%5D=opt3", body)
        self.assertIn("documentid=88", body)

    def test_incomplete_question_blocks_submit(self):
        self.module()
        response = self.client.post(reverse("masterdata:training_edit", args=[88]), {
            "modulename": "Sampling SOP",
            "frequency": "2",
            "repeatcycle": "Yearly",
            "time": "30",
            "questions-TOTAL_FORMS": "1",
            "questions-INITIAL_FORMS": "1",
            "questions-0-question": "Why sample?",
            "questions-0-ans": "opt1",
        })
        self.assertEqual(response.status_code, 200)
        self.assertEqual(self.backend.calls("POST"), [])

    def test_delete_question(self):
        self.backend.add("POST", "/master/delete-training-module-question", {"status": True})
        self.client.post(reverse("masterdata:training_question_delete", args=[88, 5]))
        body = self.backend.body(self.backend.calls("POST", "/master/delete-training-module-question")[0])
        self.assertEqual(body, {"queId": 5, "documentid": 88})

    def test_training_list_links_to_editor(self):
        self.backend.add("GET", "/master/view-training-module-list", {"status": True, "data": [
            {"module_id": 1, "documentid": 88, "name": "Sampling SOP", "file_path": "uploads/a.png"},
        ]})
        response = self.client.get(reverse("masterdata:training_list"))
        self.assertContains(response, reverse("masterdata:training_edit", args=[88]))
        self.assertContains(response, "/uploads/a.png")

    def test_training_row_without_document_id(self):
        self.backend.add("GET", "/master/view-training-module-list", {"data": [
            {"module_id": 2, "name": "Orphan", "file_path": "uploads/b.png"},
        ]})
        response = self.client.get(reverse("masterdata:training_list"))
        self.assertContains(response, "/uploads/b.png")
        self.assertContains(response, "No ID")
