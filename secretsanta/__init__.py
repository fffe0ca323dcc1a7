"""Secret Santa gift-exchange core: groups, members, draws and reveal state."""

__version__ = "0.1.0"
