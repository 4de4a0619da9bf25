"""acme_connector internal implementation."""
