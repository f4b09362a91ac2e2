"""
ASGI entrypoint: expose `app` for process managers / deployments.

- En production, un process manager (ex: gunicorn/uvicorn-workers) importe `notestore.asgi:app`.
- Toute la configuration de FastAPI est centralisée dans notestore.app_setup.factory.
"""

from notestore.app import app
