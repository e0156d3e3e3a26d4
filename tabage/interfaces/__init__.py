"""Interfaces layer - CLI and HTTP surfaces over the services layer."""
