"""Shared helpers for payload sizing, path templating and XML flattening."""
