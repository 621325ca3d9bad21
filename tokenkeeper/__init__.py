"""TokenKeeper - access/refresh token lifecycle for HTTP APIs."""

__version__ = "0.1.0"
