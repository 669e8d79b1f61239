"""SafeAlert account service: user/admin registration, login and profile updates."""

__version__ = "0.1.0"
