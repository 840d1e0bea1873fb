"""Error taxonomy shared by every component."""
from __future__ import annotations


class MonitorError(Exception):
    """Base class for all errors raised by the liquidity monitor."""


class ConfigurationError(MonitorError):
    """Missing or malformed configuration, or an operation the configured
    market version does not support."""


class InputError(MonitorError):
    """Malformed numeric, address, or credential string."""


class ReadError(MonitorError):
    """An on-chain query failed, including address resolution."""


class TransactionError(MonitorError):
    """Approval or transfer submission / confirmation failed."""


class NotificationTransportError(MonitorError):
    """The alert could not be delivered at the network level."""
