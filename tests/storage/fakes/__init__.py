"""Test doubles for the registry transport and the Harbor API."""
from .fake_harbor import FakeHarbor

__all__ = ["FakeHarbor"]
