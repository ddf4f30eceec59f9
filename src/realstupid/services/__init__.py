"""Domain services built on the store handle."""
