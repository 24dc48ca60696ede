"""API routers for WineCellar."""
