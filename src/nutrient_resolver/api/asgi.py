"""ASGI entrypoint for the nutrient resolver API."""

from nutrient_resolver.api.app import create_app
from nutrient_resolver.config import Settings
from nutrient_resolver.containers import build_container

settings = Settings()
app = create_app(build_container(settings))
