import logging

import httpx
from django.conf import settings

logger = logging.getLogger(__name__)

NO_RESPONSE_MESSAGE = "No response from server. Check your connection."


class BackendError(Exception):
    """A backend call failed; ``message`` is safe to show to the user."""

    def __init__(self, message, status=None, payload=None):
        super().__init__(message)
        self.message = message
        self.status = status
        self.payload = payload


def error_message(response):
    try:
        body = response.json()
    except ValueError:
        body = None

    if isinstance(body, dict):
        if body.get("error"):
            return str(body["error"])
        errors = body.get("errors")
        if isinstance(errors, dict) and errors:
            parts = []
            for field, msgs in errors.items():
                if isinstance(msgs, (list, tuple)):
                    msgs = ", ".join(str(m) for m in msgs)
                parts.append(f"{field}: {msgs}")
            return " | ".join(parts)
        if body.get("message"):
            return str(body["message"])
    return f"HTTP {response.status_code}"


def unwrap(payload):
    """Return ``data``, else ``Data``, else the payload as-is."""
    if isinstance(payload, dict):
        if payload.get("data") is not None:
            return payload["data"]
        if payload.get("Data") is not None:
            return payload["Data"]
    return payload


def unwrap_list(payload):
    data = unwrap(payload)
    return data if isinstance(data, list) else []


def ensure_success(payload, default_message="Request failed."):
    """Raise when a 2xx body still reports ``status: false``."""
    if isinstance(payload, dict) and "status" in payload:
        status = payload["status"]
        if status is False or str(status).lower() in ("false", "0", "error", "failed"):
            raise BackendError(payload.get("message") or default_message, payload=payload)
    return payload


class BackendClient:
    # Swapped for an httpx.MockTransport in tests.
    transport = None

    def __init__(self, token=None, base_url=None, timeout=None):
        self.token = token
        self.base_url = base_url or settings.LABDESK_API_BASE_URL
        self.timeout = timeout if timeout is not None else settings.LABDESK_API_TIMEOUT

    @classmethod
    def for_user(cls, user):
        profile = getattr(user, "profile", None)
        token = profile.api_token if profile is not None else None
        return cls(token=token or None)

    def _client(self):
        headers = {"Accept": "application/json"}
        if self.token:
            headers["Authorization"] = f"Bearer {self.token}"
        return httpx.Client(
            base_url=self.base_url,
            headers=headers,
            timeout=self.timeout,
            transport=self.transport,
        )

    def request(self, method, path, *, params=None, json=None, data=None, files=None):
        path = "/" + path.lstrip("/")
        try:
            with self._client() as client:
                response = client.request(
                    method, path, params=params, json=json, data=data, files=files
                )
        except httpx.HTTPError as exc:
            logger.error("%s %s failed: %s", method, path, exc)
            raise BackendError(NO_RESPONSE_MESSAGE) from exc

        if response.is_error:
            message = error_message(response)
            logger.warning("%s %s returned %s: %s", method, path, response.status_code, message)
            raise BackendError(message, status=response.status_code)

        if not response.content:
            return {}
        try:
            return response.json()
        except ValueError as exc:
            logger.error("%s %s returned a non-JSON body", method, path)
            raise BackendError("Unexpected response from server.", status=response.status_code) from exc

    def get(self, path, params=None):
        return self.request("GET", path, params=params)

    def post(self, path, json=None, *, data=None, files=None, params=None):
        return self.request("POST", path, params=params, json=json, data=data, files=files)

    def delete(self, path, params=None):
        return self.request("DELETE", path, params=params)


def delete_each(ids, send):
    """Call ``send(pk)`` once per id; returns ``(done, failures)``.

    A failed id does not stop the rest. ``failures`` holds ``(pk, message)`` pairs.
    """
    done, failures = [], []
    for pk in ids:
        try:
            send(pk)
        except BackendError as exc:
            logger.warning("Delete of %s failed: %s", pk, exc.message)
            failures.append((pk, exc.message))
        else:
            done.append(pk)
    return done, failures
