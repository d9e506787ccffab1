"""Observability – structured logging helpers."""
from shopcache.observability.logging.factory import JsonLoggerFactory
from shopcache.observability.logging.processors import get_logger

__all__ = ["JsonLoggerFactory", "get_logger"]
