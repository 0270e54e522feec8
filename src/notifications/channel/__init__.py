"""Channel adapter registry.

Provides singleton access to channel adapters. Uses the fake email adapter
by default; a real provider adapter can be installed with set_channel().
"""

from notifications.channel.email_port import EmailPort

EMAIL = "Email"

_channel_instances: dict[str, EmailPort] = {}


def get_channel(channel_type: str) -> EmailPort:
    """Return the configured channel adapter (singleton per channel type)."""
    if channel_type not in _channel_instances:
        if channel_type == EMAIL:
            from notifications.channel.fake_email import FakeEmailAdapter

            _channel_instances[channel_type] = FakeEmailAdapter()
        else:
            raise ValueError(f"Unknown channel type: {channel_type}")

    return _channel_instances[channel_type]


def set_channel(channel_type: str, adapter: EmailPort) -> None:
    """Install a specific adapter for a channel type."""
    _channel_instances[channel_type] = adapter


def reset_channels():
    """Reset all channel singletons (useful for testing)."""
    _channel_instances.clear()
