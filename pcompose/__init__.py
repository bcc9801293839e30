"""Load, merge and validate process-compose configurations; buffer, log and view process output."""

__version__ = "0.1.0"