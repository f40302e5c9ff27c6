"""Dispatch module."""

from .dispatcher import ConnectionSession, ILiveDispatcher, LiveDispatcher, coerce_identity

__all__ = ["ConnectionSession", "ILiveDispatcher", "LiveDispatcher", "coerce_identity"]
