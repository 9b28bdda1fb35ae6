"""Core services — platform detection and tool installers."""
