"""upkeep - run maintenance steps and keep git repositories up to date."""

__version__ = "0.1.0"
