"""acme_connector tests."""
