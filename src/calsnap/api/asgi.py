"""ASGI entrypoint for the calsnap API."""

from calsnap.api.app import create_app
from calsnap.containers import build_container

app = create_app(build_container())
