"""HTTP API for RealStupid."""
