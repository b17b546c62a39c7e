from fastapi import APIRouter, Depends
from fastapi.responses import JSONResponse

from ..context import AppContext
from ..dependencies import get_context
from ..schemas.common.common import HealthResponse

router = APIRouter(tags=["Health"])


@router.get("/health", response_model=HealthResponse)
def health(ctx: AppContext = Depends(get_context)):
    db_ok = ctx.store.ping()
    body = HealthResponse(
        status="ok" if db_ok else "degraded",
        database="ok" if db_ok else "unavailable",
        version=ctx.settings.APP_VERSION,
    )
    if not db_ok:
        return JSONResponse(status_code=503, content=body.model_dump())
    return body
