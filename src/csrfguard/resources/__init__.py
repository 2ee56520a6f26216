"""Packaged resource files for csrfguard."""
