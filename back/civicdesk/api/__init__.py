# Local application imports
from civicdesk.api.internal.main import router

__all__ = ["router"]
