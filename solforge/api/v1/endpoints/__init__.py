# API endpoints
from . import forge

__all__ = ["forge"]
