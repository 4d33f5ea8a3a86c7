"""Interface to a deployed Semacaulk contract."""

from .interface import SemacaulkReadInterface
