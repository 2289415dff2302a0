"""selfexam_server — FastAPI server exposing the self-examination SDK over HTTP.

Create the app via ``create_app()`` or run directly with the
``selfexam-server`` console script.
"""

from selfexam_server.app import create_app

__all__ = ["create_app"]
