from urllib.parse import urlencode

from django.conf import settings
from django.utils.http import url_has_allowed_host_and_scheme

from .services import BackendClient


def backend_for(request):
    return BackendClient.for_user(request.user)


def profile_for(request):
    return getattr(request.user, "profile", None)


def employee_id_for(request):
    profile = profile_for(request)
    return profile.employee_id if profile is not None else ""


def has_code(request, code):
    profile = profile_for(request)
    return profile is not None and profile.has_code(code)


def legacy_url(path, **params):
    """Link into the legacy PHP pages that have no screen here yet."""
    query = f"?{urlencode(params)}" if params else ""
    return f"{settings.LABDESK_LEGACY_BASE_URL}{path}{query}"


def safe_next(request, fallback="/"):
    """The posted ``next`` URL when it stays on this site, else ``fallback``."""
    next_url = request.POST.get("next") or request.GET.get("next") or ""
    if next_url and url_has_allowed_host_and_scheme(next_url, allowed_hosts={request.get_host()}):
        return next_url
    return fallback


def posted_ids(request, name="ids"):
    """Row ids ticked in a bulk form, or None when any of them is not a plain number."""
    ids = [value.strip() for value in request.POST.getlist(name)]
    if not all(value.isascii() and value.isdigit() for value in ids):
        return None
    return ids
