"""HTTP surface for the access core."""
