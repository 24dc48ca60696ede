"""Business logic services for WineCellar."""
