from django.conf import settings
from django.db import migrations, models
import django.db.models.deletion


class Migration(migrations.Migration):

    initial = True

    dependencies = [
        migrations.swappable_dependency(settings.AUTH_USER_MODEL),
    ]

    operations = [
        migrations.CreateModel(
            name="UserProfile",
            fields=[
                ("id", models.BigAutoField(auto_created=True, primary_key=True, serialize=False, verbose_name="ID")),
                ("employee_id", models.CharField(blank=True, help_text="Employee id issued by the lab backend.", max_length=32)),
                ("api_token", models.CharField(blank=True, max_length=512)),
                ("permission_codes", models.CharField(blank=True, help_text="Comma separated backend permission codes, e.g. 389,390.", max_length=1000)),
                ("job_title", models.CharField(blank=True, max_length=120)),
                ("updated_at", models.DateTimeField(auto_now=True)),
                ("user", models.OneToOneField(on_delete=django.db.models.deletion.CASCADE, related_name="profile", to=settings.AUTH_USER_MODEL)),
            ],
            options={
                "ordering": ["user__username"],
                "permissions": [
                    ("view_dashboard", "Can access main dashboard"),
                    ("access_action_items", "Can work on action items"),
                    ("access_calibration", "Can manage calibration prices and points"),
                    ("access_master_data", "Can manage master documents and training"),
                    ("access_testing", "Can manage TRFs and customer feedback"),
                ],
            },
        ),
    ]
