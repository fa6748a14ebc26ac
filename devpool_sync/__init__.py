"""Mirror partner repository issues into a single directory repository."""

__version__ = "1.0.0"
