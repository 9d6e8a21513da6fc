"""shipyard: build, test and release orchestration for the desktop app."""

__version__ = "0.1.0"
