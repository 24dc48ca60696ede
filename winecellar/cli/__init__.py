"""Command-line tools for WineCellar."""
