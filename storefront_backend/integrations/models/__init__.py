# integrations/models/__init__.py

from .outbound_task import OutboundTask

__all__ = ["OutboundTask"]
