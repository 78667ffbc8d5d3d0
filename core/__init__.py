"""Drill engine shared by the server and the terminal client."""
