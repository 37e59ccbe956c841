"""HTTP endpoints that convert, serve and clean up MP3 files."""
