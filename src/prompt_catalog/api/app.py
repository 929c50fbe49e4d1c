from typing import Annotated, Any

from fastapi import FastAPI, Header, Request, status
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse

from prompt_catalog.api.dependencies import (
    CronHandlerDep,
    PromptsHandlerDep,
    StoreDep,
    WebhookHandlerDep,
    lifespan,
)
from prompt_catalog.config import settings
from prompt_catalog.dto import (
    CronSyncResponse,
    ErrorResponse,
    HealthCheckResponse,
    PromptsResponse,
    WebhookHealthResponse,
)

app = FastAPI(
    title="Prompt Catalog API",
    description="AI prompt catalog backed by a Feishu Bitable with Redis caching",
    version="0.1.0",
    lifespan=lifespan,
)

app.add_middleware(
    CORSMiddleware,  # type: ignore[arg-type]
    allow_origins=["*"],
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)


@app.get("/")
async def root() -> dict[str, Any]:
    """Root endpoint with API information."""
    return {
        "name": "Prompt Catalog API",
        "version": "0.1.0",
        "description": "AI prompt catalog backed by a Feishu Bitable with Redis caching",
        "endpoints": {
            "prompts": "/api/prompts",
            "webhook": "/api/webhook/feishu",
            "cron": "/api/cron/sync",
            "health": "/health",
            "docs": "/docs",
        },
    }


@app.get("/health", response_model=HealthCheckResponse)
async def health(store: StoreDep) -> HealthCheckResponse | JSONResponse:
    """Health check endpoint."""
    healthy = await store.health_check()
    body = HealthCheckResponse(
        status="healthy" if healthy else "unhealthy",
        cache_backend=store.backend_name,
        cache_healthy=healthy,
    )
    if healthy:
        return body
    return JSONResponse(
        status_code=status.HTTP_503_SERVICE_UNAVAILABLE,
        content=body.model_dump(by_alias=True),
    )


@app.get(
    "/api/prompts",
    response_model=PromptsResponse,
    responses={500: {"model": ErrorResponse}},
)
async def get_prompts(handler: PromptsHandlerDep):
    """Return the full catalog with its categories."""
    return await handler.get_prompts()


@app.post("/api/webhook/feishu")
async def feishu_webhook(request: Request, handler: WebhookHandlerDep) -> JSONResponse:
    """Receive Feishu event subscription deliveries."""
    return await handler.receive(request)


@app.get("/api/webhook/feishu", response_model=WebhookHealthResponse)
async def feishu_webhook_health(handler: WebhookHandlerDep) -> WebhookHealthResponse:
    """Health check for the webhook endpoint."""
    return await handler.health()


@app.get(
    "/api/cron/sync",
    responses={200: {"model": CronSyncResponse}, 500: {"model": CronSyncResponse}},
)
async def cron_sync(
    handler: CronHandlerDep,
    authorization: Annotated[str | None, Header()] = None,
) -> JSONResponse:
    """Scheduled sync, skipped while the cache is fresh."""
    return await handler.run(authorization)


if __name__ == "__main__":
    import uvicorn

    uvicorn.run(
        "prompt_catalog.api.app:app",
        host=settings.api_host,
        port=settings.api_port,
        reload=settings.api_reload,
    )
