"""Services package: the DI container used to hand stores to application code."""
from .container import ServiceContainer

__all__ = ["ServiceContainer"]
