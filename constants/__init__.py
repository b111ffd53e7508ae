"""Shared constant namespaces."""
