from django import forms
from django.forms.formsets import DELETION_FIELD_NAME

from core.forms import BootstrapFormMixin

from .services import POINT_FIELDS, compute_error


class InstrumentLookupForm(BootstrapFormMixin, forms.Form):
    instrument_id = forms.IntegerField(label="Instrument ID", min_value=1)


class CalibPointForm(BootstrapFormMixin, forms.Form):
    parameter = forms.CharField(max_length=255, error_messages={"required": "Parameter is required."})
    specification = forms.CharField(max_length=255, required=False)
    setpoint = forms.CharField(max_length=100, error_messages={"required": "Setpoint is required."})
    uuc = forms.CharField(label="UUC", max_length=100, required=False)
    master = forms.CharField(max_length=100, required=False)
    error = forms.CharField(
        max_length=100,
        required=False,
        help_text="Filled in as UUC minus Master when both are numbers.",
    )
    remark = forms.CharField(max_length=255, required=False)

    def clean(self):
        cleaned = super().clean()
        error = compute_error(cleaned.get("uuc"), cleaned.get("master"))
        if error is not None:
            cleaned["error"] = error
        return cleaned


class BaseCalibPointFormSet(forms.BaseFormSet):
    def clean(self):
        super().clean()
        kept = [form for form in self.forms if not self._should_delete_form(form)]
        if not kept:
            raise forms.ValidationError("At least one row is required")

    def posted_rows(self):
        """Current values of the bound rows, used to re-render with an extra row."""
        rows = []
        for form in self.forms:
            if form[DELETION_FIELD_NAME].value():
                continue
            rows.append({field: form[field].value() or "" for field in POINT_FIELDS})
        return rows


CalibPointFormSet = forms.formset_factory(
    CalibPointForm, formset=BaseCalibPointFormSet, extra=0, can_delete=True
)
