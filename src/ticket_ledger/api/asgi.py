"""ASGI entrypoint for the ticket ledger API."""

from ticket_ledger.api.app import create_app
from ticket_ledger.containers import build_container

app = create_app(build_container())
