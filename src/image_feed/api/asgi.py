"""ASGI entrypoint for the image feed API."""

from image_feed.api.app import create_app
from image_feed.containers import build_container

app = create_app(build_container())
