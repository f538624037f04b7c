"""Messaging module."""

from .sender import IMessageSender, SendError, SendResult, WhapiSender

__all__ = ["IMessageSender", "SendError", "SendResult", "WhapiSender"]
