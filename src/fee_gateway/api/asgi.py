"""ASGI entrypoint for the fee gateway API."""

from fee_gateway.api.app import create_app
from fee_gateway.containers import build_container

app = create_app(build_container())
