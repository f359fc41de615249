# Third-party imports
from fastapi import APIRouter

# Local application imports
from civicdesk.api.internal.routes.v1.issues import issue_router

router = APIRouter()

# Include all internal v1 routers
router.include_router(issue_router)
