from django.conf import settings
from django.core.management.base import BaseCommand, CommandError

from core.services import BackendClient, BackendError


def describe_envelope(payload):
    if isinstance(payload, list):
        return f"bare list ({len(payload)} rows)"
    if isinstance(payload, dict):
        for key in ("data", "Data"):
            if payload.get(key) is not None:
                value = payload[key]
                size = f"{len(value)} rows" if isinstance(value, list) else type(value).__name__
                return f"'{key}' envelope ({size})"
        return f"object with keys: {', '.join(sorted(payload)) or 'none'}"
    return type(payload).__name__


class Command(BaseCommand):
    help = "Call a backend list endpoint and report reachability and envelope shape."

    def add_arguments(self, parser):
        parser.add_argument("--path", default="/actionitem/get-allot-sample")
        parser.add_argument("--token", default="", help="Bearer token to send, if the endpoint needs one.")

    def handle(self, *args, **options):
        client = BackendClient(token=options["token"] or None)
        self.stdout.write(f"GET {settings.LABDESK_API_BASE_URL.rstrip('/')}{options['path']}")
        try:
            payload = client.get(options["path"])
        except BackendError as exc:
            raise CommandError(f"Backend call failed: {exc.message}") from exc

        self.stdout.write(self.style.SUCCESS(f"Backend reachable, got {describe_envelope(payload)}."))
