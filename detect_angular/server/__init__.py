"""Command-line tool, HTTP server mode and report output."""
