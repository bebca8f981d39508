"""ASGI entrypoint for the allergen scanner API."""

from allergen_scanner.api.app import create_app
from allergen_scanner.containers import build_container

app = create_app(build_container())
