"""Utility helpers for the SIN intake wizard."""
