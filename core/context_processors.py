from django.conf import settings


def dashboard(request):
    profile = getattr(request.user, "profile", None) if request.user.is_authenticated else None
    return {
        "employee_id": profile.employee_id if profile else "",
        "legacy_base_url": settings.LABDESK_LEGACY_BASE_URL,
    }
