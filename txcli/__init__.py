"""Client library for a {json:api} localization service, with a worker pool and throttling helpers."""

__version__ = "0.1.0"