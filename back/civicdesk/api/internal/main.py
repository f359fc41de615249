# Third-party imports
from fastapi import APIRouter

# Local application imports
from civicdesk.api.internal.routes.v1.routes import router as v1_router
from civicdesk.settings import settings

router = APIRouter(prefix=settings.API_V1_STR)
router.include_router(v1_router)
