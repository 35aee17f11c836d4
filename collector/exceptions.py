"""Collector exceptions."""


class CollectorError(Exception):
    """Base class for collector failures."""


class BadRequestError(CollectorError):
    """The request body cannot be turned into events (client error)."""


class UnsupportedEncodingError(BadRequestError):
    """The request declared a character set other than UTF-8/16/32."""


class ChannelError(CollectorError):
    """The downstream channel refused or failed to accept a batch."""
