"""Shared exceptions, constants and the service base class."""
