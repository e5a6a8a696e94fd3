"""tessera -- column formula micro-engine: formula parsing and tolerant aggregates."""

__version__ = "0.1.0"
__core_api_version__ = 1
