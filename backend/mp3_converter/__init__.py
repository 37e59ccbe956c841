"""HTTP service that extracts MP3 audio from uploaded or remote videos."""

__version__ = "1.0.0"
