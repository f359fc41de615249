# Local application imports
from civicdesk.schemas.common.response_schemas import BaseResponse, ErrorDetails

__all__ = ["BaseResponse", "ErrorDetails"]
