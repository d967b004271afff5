"""ASGI entrypoint for the analytics API."""

from calorie_vita.api.app import create_app
from calorie_vita.containers import build_container

app = create_app(build_container())
