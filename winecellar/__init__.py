"""WineCellar - a small self-hosted wine inventory tracker."""

__version__ = "0.1.0"
