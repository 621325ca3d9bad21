"""HTTP routes for TokenKeeper."""

from tokenkeeper.api.auth import router as auth_router

__all__ = ["auth_router"]
