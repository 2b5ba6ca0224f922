"""Download videos and channels from SwitchTube."""

__version__ = "0.1.0"
__all__ = ["__version__"]