"""agents-fun — orchestration shell around an autonomous agent runtime."""

__version__ = "0.1.0"
