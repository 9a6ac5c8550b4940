"""External interfaces: HTTP app and command-line tool."""
