"""Read helpers used by list and detail views.

Reads never raise: a failed fetch shows an error message and falls back to
empty data so the page still renders.
"""
import logging

from django.contrib import messages

from .backend import BackendError, unwrap, unwrap_list

logger = logging.getLogger(__name__)


def _report(request, exc, failure):
    logger.error("%s: %s", failure, exc.message)
    if request is not None:
        messages.error(request, f"{failure} {exc.message}".strip())


def load_list(request, client, path, params=None, failure="Failed to load data."):
    try:
        return unwrap_list(client.get(path, params=params))
    except BackendError as exc:
        _report(request, exc, failure)
        return []


def load_object(request, client, path, params=None, failure="Failed to load data."):
    try:
        data = unwrap(client.get(path, params=params))
    except BackendError as exc:
        _report(request, exc, failure)
        return {}
    if isinstance(data, list):
        data = data[0] if data else {}
    return data if isinstance(data, dict) else {}


def as_choices(items, value="id", label="name", blank=None):
    choices = [(str(item.get(value)), str(item.get(label) or "")) for item in items if isinstance(item, dict)]
    if blank is not None:
        choices.insert(0, ("", blank))
    return choices


def load_choices(request, client, path, value="id", label="name", blank=None, failure="Failed to load options."):
    return as_choices(load_list(request, client, path, failure=failure), value=value, label=label, blank=blank)


def customer_type_choices(request, client):
    return load_choices(request, client, "/people/get-customer-type-list", blank="All")


def specific_purpose_choices(request, client):
    return load_choices(request, client, "/people/get-specific-purpose-list", blank="All")
