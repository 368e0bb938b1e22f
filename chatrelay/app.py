from contextlib import asynccontextmanager

from fastapi import FastAPI, Request, status
from fastapi.responses import JSONResponse

from chatrelay.config import get_config
from chatrelay.exceptions import MalformedRequest, UpstreamProviderError
from chatrelay.log import logger
from chatrelay.router.api import routers


@asynccontextmanager
async def lifespan(app: FastAPI):
    config = get_config()
    logger.info(f"Serving chat with {config.default_model_id}")
    if not config.schedule_csv_url:
        logger.warning("No schedule CSV url configured, the schedule tool will report an error")
    yield


app = FastAPI(lifespan=lifespan)


@app.exception_handler(MalformedRequest)
async def malformed_request_handler(request: Request, exc: MalformedRequest) -> JSONResponse:
    logger.warning(f"Malformed request to {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_400_BAD_REQUEST, content={"detail": str(exc)})


@app.exception_handler(UpstreamProviderError)
async def upstream_provider_error_handler(request: Request, exc: UpstreamProviderError) -> JSONResponse:
    logger.error(f"Upstream provider error for {request.url.path}: {exc}")
    return JSONResponse(status_code=status.HTTP_502_BAD_GATEWAY, content={"detail": str(exc)})


@app.get("/")
async def hello():
    return {"message": "Hello World"}


for router in routers:
    app.include_router(router)
