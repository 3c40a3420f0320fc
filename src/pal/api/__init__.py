"""HTTP routes for the local control service."""
