from django import forms
from django.conf import settings
from django.forms.formsets import DELETION_FIELD_NAME

from core.forms import BootstrapFormMixin, DateInput

from .services import QUESTION_FIELDS, approver_name

REQUIRED = {"required": "This field is required"}


def _choices(items, blank="Select", label=None):
    label = label or (lambda item: item.get("name") or "")
    return [("", blank)] + [(str(item.get("id")), label(item)) for item in items if isinstance(item, dict)]


class DocumentFilterForm(BootstrapFormMixin, forms.Form):
    TYPE_CHOICES = [
        ("active", "Active"),
        ("obsolete", "Obsolete"),
        ("pending", "Pending"),
        ("saved", "Saved"),
    ]
    FIELD_CHOICES = [("All", "All"), ("name", "Name"), ("Code", "Code")]

    type = forms.ChoiceField(choices=TYPE_CHOICES, required=False, initial="active")
    fieldType = forms.ChoiceField(label="Search By", choices=FIELD_CHOICES, required=False, initial="All")
    fieldVal = forms.CharField(label="Search", required=False)

    def params(self):
        data = self.cleaned_data if self.is_bound and self.is_valid() else {}
        params = {"type": data.get("type") or "active"}
        value = (data.get("fieldVal") or "").strip()
        if value:
            params["fieldType"] = data.get("fieldType") or "All"
            params["fieldVal"] = value
        return params


class ApproveDocumentForm(BootstrapFormMixin, forms.Form):
    effectiveDate = forms.DateField(
        label="Effective Date",
        widget=DateInput(),
        input_formats=["%Y-%m-%d"],
        error_messages={"invalid": "Invalid date format. Please use YYYY-MM-DD"},
    )


class MasterDocumentForm(BootstrapFormMixin, forms.Form):
    ORIENTATION_CHOICES = [("", "Select"), ("vertical", "Vertical"), ("horizontal", "Horizontal")]
    HEADER_CHOICES = [
        ("For Standard Operating Procedure", "For Standard Operating Procedure"),
        ("For Quality Manual", "For Quality Manual"),
    ]
    FOOTER_CHOICES = [
        ("Standard Operating Procedure", "Standard Operating Procedure"),
        ("Quality Manual", "Quality Manual"),
    ]
    TRAINING_CHOICES = [("Yes", "Yes"), ("No", "No")]

    documentType = forms.ChoiceField(label="Type of Document", error_messages=REQUIRED)
    category = forms.ChoiceField(error_messages=REQUIRED)
    orientation = forms.ChoiceField(choices=ORIENTATION_CHOICES, error_messages=REQUIRED)
    letterHead = forms.ChoiceField(label="Letter Head", required=False)
    name = forms.CharField(max_length=255, error_messages=REQUIRED)
    documentNo = forms.CharField(label="Document No./Procedure No", max_length=100, error_messages=REQUIRED)
    code = forms.CharField(max_length=100, required=False)
    department = forms.ChoiceField(error_messages=REQUIRED)
    issueNo = forms.CharField(label="Issue No", max_length=20, required=False, initial="01")
    issueDate = forms.DateField(label="Issue Date", required=False, widget=DateInput())
    effectiveDate = forms.DateField(label="Effective Date", widget=DateInput(), error_messages=REQUIRED)
    reviewBefore = forms.DateField(label="Review Before", widget=DateInput(), error_messages=REQUIRED)
    revNo = forms.CharField(label="Rev No", max_length=20, required=False, initial="00")
    revDate = forms.CharField(
        label="Rev Date",
        required=False,
        initial="NA",
        widget=forms.TextInput(attrs={"readonly": True}),
    )
    header = forms.ChoiceField(choices=HEADER_CHOICES, required=False)
    footer = forms.ChoiceField(choices=FOOTER_CHOICES, required=False)
    deadlineInDays = forms.IntegerField(label="Deadline In Days", min_value=0, error_messages=REQUIRED)
    reviewedBy = forms.ChoiceField(label="Reviewed By", error_messages=REQUIRED)
    approvedBy = forms.ChoiceField(label="Approved By", error_messages=REQUIRED)
    reviewedOn = forms.DateField(label="Reviewed On", required=False, widget=DateInput())
    isTrainingRequired = forms.ChoiceField(
        label="Is Training Required",
        choices=TRAINING_CHOICES,
        widget=forms.RadioSelect,
        initial="Yes",
        error_messages=REQUIRED,
    )
    content = forms.CharField(required=False, widget=forms.Textarea(attrs={"rows": 10}))

    def __init__(self, *args, document_types=(), categories=(), departments=(), approvers=(),
                 companies=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["documentType"].choices = _choices(document_types)
        self.fields["category"].choices = _choices(categories)
        self.fields["department"].choices = _choices(departments)
        self.fields["reviewedBy"].choices = _choices(approvers, label=approver_name)
        self.fields["approvedBy"].choices = _choices(approvers, label=approver_name)
        self.fields["letterHead"].choices = [("None", "None")] + [
            (company["name"], company["name"]) for company in companies if company.get("name")
        ]


class TrainingModuleForm(BootstrapFormMixin, forms.Form):
    FREQUENCY_CHOICES = [("", "Select Frequency")] + [(str(i), str(i)) for i in range(37)]
    REPEAT_CHOICES = [
        ("", "Select Cycle Repeat Interval"),
        ("Daily", "Daily"),
        ("Weekly", "Weekly"),
        ("Monthly", "Monthly"),
        ("Quarterly", "Quarterly"),
        ("Yearly", "Yearly"),
    ]
    IMAGE_TYPES = ("image/jpeg", "image/jpg", "image/png", "image/gif")

    modulename = forms.CharField(
        label="Module Name",
        widget=forms.TextInput(attrs={"readonly": True}),
        error_messages={"required": "Module name is missing. Please refresh and try again."},
    )
    frequency = forms.ChoiceField(choices=FREQUENCY_CHOICES, error_messages={"required": "Please select frequency"})
    repeatcycle = forms.ChoiceField(
        label="Cycle Repeat Interval",
        choices=REPEAT_CHOICES,
        error_messages={"required": "Please select cycle repeat interval"},
    )
    time = forms.CharField(label="Time To Read (minutes)", error_messages={"required": "Please enter time to read"})
    video = forms.URLField(label="Video Link", required=False)
    file = forms.FileField(label="Image", required=False, widget=forms.ClearableFileInput(attrs={"accept": "image/*"}))

    def clean_file(self):
        image = self.cleaned_data.get("file")
        if not image:
            return image
        if getattr(image, "content_type", None) not in self.IMAGE_TYPES:
            raise forms.ValidationError("Please select a valid image file (JPG, PNG, GIF)")
        if image.size > settings.LABDESK_MAX_UPLOAD_BYTES:
            raise forms.ValidationError("File size should be less than 5MB")
        return image


class QuestionForm(BootstrapFormMixin, forms.Form):
    ANSWER_CHOICES = [("opt1", "A"), ("opt2", "B"), ("opt3", "C"), ("opt4", "D")]

    question = forms.CharField(max_length=500)
    opt1 = forms.CharField(label="Option A", max_length=255)
    opt2 = forms.CharField(label="Option B", max_length=255)
    opt3 = forms.CharField(label="Option C", max_length=255)
    opt4 = forms.CharField(label="Option D", max_length=255)
    ans = forms.ChoiceField(label="Answer", choices=ANSWER_CHOICES, initial="opt1")
    expaination = forms.CharField(label="Explanation", widget=forms.Textarea(attrs={"rows": 2}))


class BaseQuestionFormSet(forms.BaseFormSet):
    def posted_rows(self):
        rows = []
        for form in self.forms:
            if form[DELETION_FIELD_NAME].value():
                continue
            rows.append({field: form[field].value() or "" for field in QUESTION_FIELDS})
        return rows


QuestionFormSet = forms.formset_factory(QuestionForm, formset=BaseQuestionFormSet, extra=0, can_delete=True)
