"""Open Badge Factory plugin: badge issuance on course completion."""

__version__ = "1.0.0"
