"""ASGI entrypoint for the progress portal API."""

from progress_portal.api.app import create_app
from progress_portal.containers import build_container

app = create_app(build_container())
