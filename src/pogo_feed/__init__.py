"""
Pogo feed pipeline

Keeps a self-hosted podcast's RSS and JSON feeds in sync with a directory
of episode audio files, their shownotes and the podcast configuration.
"""

__version__ = "0.1.0"
__author__ = "Pogo Team"

from pogo_feed.config import Settings

__all__ = ["Settings", "__version__"]
