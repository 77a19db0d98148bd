"""
FastAPI routers grouped by domain (auth, users, challenges, photos, posts).

Each module exposes an APIRouter included by the app factory. Services are
built once per app and read from ``request.app.state``.
"""
