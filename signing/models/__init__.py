"""Data types of the signing feature."""
