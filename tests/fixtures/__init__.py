"""Test doubles for the repository gateway and status sink."""

from .gateway import FakeRepositoryGateway
from .sink import RecordingSink

__all__ = ["FakeRepositoryGateway", "RecordingSink"]
