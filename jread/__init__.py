"""J Read - serial fiction reading and publishing platform."""

__version__ = "0.1.0"
