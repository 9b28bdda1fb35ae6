"""devinstall — platform-aware installers for developer tools."""

__version__ = "0.1.0"
