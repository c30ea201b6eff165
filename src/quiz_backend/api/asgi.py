"""ASGI entrypoint for the quiz API."""

from quiz_backend.api.app import create_app
from quiz_backend.containers import build_container

app = create_app(build_container())
