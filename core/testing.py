"""Test helpers: an in-memory stand-in for the lab backend."""
import json
from unittest import mock

import httpx
from django.conf import settings
from django.contrib.auth import get_user_model
from django.contrib.auth.models import Permission

from core.models import UserProfile
from core.services.backend import BackendClient


class FakeBackend:
    """Answers backend calls from registered routes and records every request."""

    def __init__(self):
        self.routes = {}
        self.requests = []
        self.prefix = httpx.URL(settings.LABDESK_API_BASE_URL).path.rstrip("/")

    def add(self, method, path, payload=None, status=200):
        self.routes[(method.upper(), path)] = (status, payload)

    def fail(self, method, path):
        """Make a route behave like an unreachable server."""
        self.routes[(method.upper(), path)] = (None, httpx.ConnectError)

    def _path(self, request):
        path = request.url.path
        if self.prefix and path.startswith(self.prefix):
            path = path[len(self.prefix):]
        return path

    def handler(self, request):
        self.requests.append(request)
        key = (request.method, self._path(request))
        if key not in self.routes:
            return httpx.Response(404, json={"message": f"No route for {key[0]} {key[1]}"})
        status, payload = self.routes[key]
        if payload is httpx.ConnectError:
            raise httpx.ConnectError("connection refused", request=request)
        if callable(payload):
            return payload(request)
        return httpx.Response(status, json=payload)

    @property
    def transport(self):
        return httpx.MockTransport(self.handler)

    def calls(self, method=None, path=None):
        return [
            request for request in self.requests
            if (method is None or request.method == method.upper())
            and (path is None or self._path(request) == path)
        ]

    @staticmethod
    def body(request):
        return json.loads(request.content.decode() or "null")

    @staticmethod
    def params(request):
        return dict(request.url.params)


class BackendTestMixin:
    """Installs a FakeBackend and logs in a user holding ``permissions``."""

    permissions = []
    employee_id = "42"

    def setUp(self):
        super().setUp()
        self.backend = FakeBackend()
        patcher = mock.patch.object(BackendClient, "transport", self.backend.transport)
        patcher.start()
        self.addCleanup(patcher.stop)

        self.user = get_user_model().objects.create_user(username="labuser", password="pass")
        UserProfile.objects.create(user=self.user, employee_id=self.employee_id, api_token="token-123")
        codenames = [perm.split(".")[-1] for perm in self.permissions]
        self.user.user_permissions.set(Permission.objects.filter(codename__in=codenames))
        self.client.force_login(self.user)
