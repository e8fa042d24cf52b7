"""Common utilities shared by gateway services."""
