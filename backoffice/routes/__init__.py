# ==== ROUTES PACKAGE ==== #

"""
FastAPI routers for the back office API.

Business routers live under ``/api`` and are tenant scoped; tenant
administration lives under ``/admin``.
"""
