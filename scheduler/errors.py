"""Exceptions raised by the Slot Hunter outside of a running round."""


class SlotHunterError(Exception):
    """Base class for project errors."""


class ConfigurationError(SlotHunterError):
    """Settings or strategy file cannot be loaded or validated."""


class StartupError(SlotHunterError):
    """A fatal defect found before any round runs (nothing to do, unknown person/provider)."""
