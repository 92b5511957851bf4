from django import forms

from core.forms import BootstrapFormMixin, DateInput

from .services import RATING_FIELDS


class TrfFilterForm(BootstrapFormMixin, forms.Form):
    STATUS_CHOICES = [
        ("", "All Status"),
        ("1", "Pending For Review"),
        ("0", "Pending For Submit Review"),
        ("98", "Pending For Approvals"),
    ]

    searchByFromdate = forms.DateField(label="From", required=False, widget=DateInput())
    searchByTodate = forms.DateField(label="To", required=False, widget=DateInput())
    searchstatus = forms.ChoiceField(label="Status", choices=STATUS_CHOICES, required=False)
    ctype = forms.ChoiceField(label="Customer Type", required=False)
    specificpurpose = forms.ChoiceField(label="Specific Purpose", required=False)

    def __init__(self, *args, ctypes=(), purposes=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["ctype"].choices = list(ctypes) or [("", "All")]
        self.fields["specificpurpose"].choices = list(purposes) or [("", "All")]

    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get("searchByFromdate"), cleaned.get("searchByTodate")
        if start and end and start > end:
            raise forms.ValidationError("From date must be on or before the To date.")
        return cleaned

    def params(self):
        """Only the filters that hold a value; dates go out as ``YYYY-MM-DD``."""
        if not (self.is_bound and self.is_valid()):
            return {}
        params = {}
        for name, value in self.cleaned_data.items():
            if not value:
                continue
            params[name] = value.isoformat() if hasattr(value, "isoformat") else value
        return params


class FeedbackForm(BootstrapFormMixin, forms.Form):
    RATING_CHOICES = [(str(n), str(n)) for n in range(1, 6)]
    RECOMMEND_CHOICES = [("Yes", "Yes"), ("No", "No")]

    willyourecommend = forms.ChoiceField(
        label="Will you recommend us to others?",
        choices=RECOMMEND_CHOICES,
        widget=forms.RadioSelect,
        initial="Yes",
    )
    willyourecommendreason = forms.CharField(
        label="Why",
        widget=forms.Textarea(attrs={"rows": 2}),
        error_messages={"required": "Please fill in the 'Why' reason"},
    )
    suggestion = forms.CharField(
        label="Suggestions/Comments",
        widget=forms.Textarea(attrs={"rows": 3}),
        error_messages={"required": "Please fill in Suggestions/Comments"},
    )
    contactpersonname = forms.CharField(label="Name", required=False)
    contactpersondepartment = forms.CharField(label="Department", required=False)
    contactpersondesignation = forms.CharField(label="Designation", required=False)

    def __init__(self, *args, **kwargs):
        super().__init__(*args, **kwargs)
        for name, label in RATING_FIELDS:
            self.fields[name] = forms.ChoiceField(
                label=label,
                choices=self.RATING_CHOICES,
                widget=forms.RadioSelect(attrs={"class": "form-check-input"}),
                initial="5",
            )
        # ratings lead the form
        order = [name for name, _ in RATING_FIELDS]
        self.order_fields(order)

    def rating_fields(self):
        return [self[name] for name, _ in RATING_FIELDS]
