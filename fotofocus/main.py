"""ASGI entry point: ``uvicorn fotofocus.main:app``."""
from fotofocus.app import create_app

app = create_app()
