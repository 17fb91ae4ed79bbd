"""CI Status DB - local store of GitHub Actions build status."""

__version__ = "0.1.0"
