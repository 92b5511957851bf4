from django import forms

from core.forms import BootstrapFormMixin, DateInput, MultipleFileField

from .services import person_name


def _choices(items, blank, label=None):
    label = label or (lambda item: item.get("name") or "")
    return [("", blank)] + [(str(item.get("id")), label(item)) for item in items if isinstance(item, dict)]


class SampleFilterForm(BootstrapFormMixin, forms.Form):
    ctype = forms.ChoiceField(label="Customer Type", required=False)
    specificpurpose = forms.ChoiceField(label="Specific Purpose", required=False)

    def __init__(self, *args, ctypes=(), purposes=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["ctype"].choices = list(ctypes) or [("", "All")]
        self.fields["specificpurpose"].choices = list(purposes) or [("", "All")]


class HodFilterForm(SampleFilterForm):
    STATUS_CHOICES = [("Pending", "Pending"), ("Approved", "Approved")]

    department = forms.ChoiceField(label="Lab", required=False)
    status = forms.ChoiceField(choices=STATUS_CHOICES, required=False, initial="Pending")

    def __init__(self, *args, labs=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["department"].choices = _choices(labs, "All")


class DateRangeForm(BootstrapFormMixin, forms.Form):
    startdate = forms.DateField(label="From", required=False, widget=DateInput())
    enddate = forms.DateField(label="To", required=False, widget=DateInput())

    def clean(self):
        cleaned = super().clean()
        start, end = cleaned.get("startdate"), cleaned.get("enddate")
        if start and end and start > end:
            raise forms.ValidationError("From date must be on or before the To date.")
        return cleaned


class AllotSampleForm(BootstrapFormMixin, forms.Form):
    department = forms.ChoiceField(label="Lab", error_messages={"required": "Please select a Lab."})
    person = forms.ChoiceField(error_messages={"required": "Please select a Person."})

    def __init__(self, *args, labs=(), persons=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["department"].choices = _choices(labs, "Select Lab")
        self.fields["person"].choices = _choices(persons, "Select Person")


class AllotItemForm(BootstrapFormMixin, forms.Form):
    biscode = forms.CharField(label="BIS Code", required=False)
    alloted = forms.FloatField(label="Allot", required=False)

    def __init__(self, *args, item=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.item = item or {}

    @property
    def qleft(self):
        try:
            return float(self.item.get("qleft"))
        except (TypeError, ValueError):
            return None

    def clean(self):
        cleaned = super().clean()
        biscode = (cleaned.get("biscode") or "").strip()
        alloted = cleaned.get("alloted")
        if not biscode or alloted is None:
            raise forms.ValidationError("Please fill BIS Code and Allot.")
        if alloted <= 0:
            raise forms.ValidationError("Allot quantity must be greater than 0.")
        qleft = self.qleft
        if qleft is not None and alloted > qleft:
            raise forms.ValidationError(f"Allot quantity exceeds left ({qleft:g}).")
        cleaned["biscode"] = biscode
        return cleaned


class BaseAllotItemFormSet(forms.BaseFormSet):
    """One form per received item; quantities are checked against the items the backend sent."""

    def __init__(self, *args, items=(), **kwargs):
        self.items = list(items)
        super().__init__(*args, **kwargs)

    def get_form_kwargs(self, index):
        kwargs = super().get_form_kwargs(index)
        kwargs["item"] = self.items[index] if index is not None and index < len(self.items) else {}
        return kwargs

    def clean(self):
        super().clean()
        if self.total_form_count() == 0:
            raise forms.ValidationError("Nothing to allot.")
        if self.total_form_count() != len(self.items):
            raise forms.ValidationError("The received items have changed. Please reload the page.")

    def allotments(self):
        return [
            {"qid": form.item.get("qid"), "biscode": form.cleaned_data["biscode"],
             "alloted": form.cleaned_data["alloted"]}
            for form in self.forms
        ]


AllotItemFormSet = forms.formset_factory(AllotItemForm, formset=BaseAllotItemFormSet, extra=0)


class AssignChemistForm(BootstrapFormMixin, forms.Form):
    LONG_TERM_CHOICES = [("", "Select"), ("yes", "Yes"), ("no", "No")]

    department = forms.ChoiceField(required=False)
    person = forms.ChoiceField(label="Chemist for all parameters", required=False)
    allo = forms.DateField(label="Allotment date for all", required=False, widget=DateInput())
    dued = forms.DateField(label="Due date for all", required=False, widget=DateInput())
    longTermTest = forms.ChoiceField(
        label="Long Term Test",
        choices=LONG_TERM_CHOICES,
        error_messages={"required": "Please select Long Term Test option."},
    )
    interim_yes = forms.DateField(label="Interim Report Date", required=False, widget=DateInput())
    longterm = forms.DateField(label="Longterm Report Date", required=False, widget=DateInput())
    interim_no = forms.DateField(label="Tentative Report Date", required=False, widget=DateInput())

    def __init__(self, *args, departments=(), persons=(), **kwargs):
        super().__init__(*args, **kwargs)
        self.fields["department"].choices = _choices(departments, "Select Department")
        self.fields["person"].choices = _choices(
            persons,
            "Select Chemist",
            label=person_name,
        )

    def clean(self):
        cleaned = super().clean()
        choice = cleaned.get("longTermTest")
        if choice == "yes" and (not cleaned.get("interim_yes") or not cleaned.get("longterm")):
            raise forms.ValidationError("Please fill Interim and Longterm report dates.")
        if choice == "no" and not cleaned.get("interim_no"):
            raise forms.ValidationError("Please fill Tentative Report Date.")
        return cleaned

    def row_defaults(self):
        data = getattr(self, "cleaned_data", {})
        return {
            "chemist": data.get("person") or "",
            "allotmentdate": data.get("allo"),
            "duedate": data.get("dued"),
        }


class ChemistRowForm(BootstrapFormMixin, forms.Form):
    parameter = forms.CharField(widget=forms.HiddenInput)
    chemist = forms.ChoiceField(required=False)
    allotmentdate = forms.DateField(label="Allotment Date", required=False, widget=DateInput())
    duedate = forms.DateField(label="Due Date", required=False, widget=DateInput())

    def __init__(self, *args, chemists=(), defaults=None, **kwargs):
        super().__init__(*args, **kwargs)
        self.defaults = defaults or {}
        self.fields["chemist"].choices = _choices(chemists, "Select Chemist")

    def clean(self):
        cleaned = super().clean()
        for field in ("chemist", "allotmentdate", "duedate"):
            if not cleaned.get(field) and self.defaults.get(field):
                cleaned[field] = self.defaults[field]
        if not cleaned.get("chemist"):
            raise forms.ValidationError("Please select a Chemist.")
        if not cleaned.get("allotmentdate"):
            raise forms.ValidationError("Please enter Allotment Date.")
        if not cleaned.get("duedate"):
            raise forms.ValidationError("Please enter Due Date.")
        return cleaned


class BaseChemistRowFormSet(forms.BaseFormSet):
    def __init__(self, *args, rows=(), defaults=None, **kwargs):
        self.rows = list(rows)
        self.defaults = defaults or {}
        super().__init__(*args, **kwargs)

    def get_form_kwargs(self, index):
        kwargs = super().get_form_kwargs(index)
        row = self.rows[index] if index is not None and index < len(self.rows) else {}
        kwargs["chemists"] = row.get("chemists") or []
        kwargs["defaults"] = self.defaults
        return kwargs


ChemistRowFormSet = forms.formset_factory(ChemistRowForm, formset=BaseChemistRowFormSet, extra=0)


class StartTestForm(BootstrapFormMixin, forms.Form):
    start_date = forms.DateField(
        widget=DateInput(),
        error_messages={"required": "Please select a start date."},
    )


class UploadDocumentsForm(BootstrapFormMixin, forms.Form):
    name = forms.CharField(max_length=255, error_messages={"required": "Please enter a document name."})
    files = MultipleFileField(required=False)

    def clean_files(self):
        files = self.cleaned_data.get("files") or []
        if not files:
            raise forms.ValidationError("Please choose at least one file.")
        return files


class HodApproveForm(BootstrapFormMixin, forms.Form):
    hodremark = forms.CharField(label="Remark", required=False, widget=forms.Textarea(attrs={"rows": 3}))


class RemnantForm(BootstrapFormMixin, forms.Form):
    qid = forms.CharField(widget=forms.HiddenInput)
    department = forms.CharField(widget=forms.HiddenInput)
    remnant = forms.FloatField(required=False, min_value=0)
    remark = forms.CharField(required=False)


RemnantFormSet = forms.formset_factory(RemnantForm, extra=0)
