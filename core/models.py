from django.contrib.auth import get_user_model
from django.db import models


class UserProfile(models.Model):
    user = models.OneToOneField(get_user_model(), on_delete=models.CASCADE, related_name="profile")
    employee_id = models.CharField(max_length=32, blank=True, help_text="Employee id issued by the lab backend.")
    api_token = models.CharField(max_length=512, blank=True)
    permission_codes = models.CharField(
        max_length=1000,
        blank=True,
        help_text="Comma separated backend permission codes, e.g. 389,390.",
    )
    job_title = models.CharField(max_length=120, blank=True)
    updated_at = models.DateTimeField(auto_now=True)

    class Meta:
        ordering = ["user__username"]
        permissions = [
            ("view_dashboard", "Can access main dashboard"),
            ("access_action_items", "Can work on action items"),
            ("access_calibration", "Can manage calibration prices and points"),
            ("access_master_data", "Can manage master documents and training"),
            ("access_testing", "Can manage TRFs and customer feedback"),
        ]

    def __str__(self):
        return f"Profile for {self.user.get_username()}"

    @property
    def codes(self):
        return {code.strip() for code in self.permission_codes.split(",") if code.strip()}

    def has_code(self, code):
        return str(code) in self.codes
