# Local application imports
from civicdesk.schemas.auth.caller_schemas import Caller

__all__ = ["Caller"]
