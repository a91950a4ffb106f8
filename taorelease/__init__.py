"""Release automation for TAO extensions, npm packages and git repositories."""

__version__ = "0.1.0"
