"""HTTP API of the drill server."""
