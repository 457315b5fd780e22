"""ASGI entrypoint for the learning assistant API."""

from talk_to_study.api.app import create_app
from talk_to_study.containers import build_container

app = create_app(build_container())
