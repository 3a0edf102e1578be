"""Inkwell: a blogging API with accounts and a post publishing workflow."""

__version__ = "0.1.0"
