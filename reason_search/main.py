from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from reason_search.api.routes import research
from reason_search.config import settings
from reason_search.models.schemas import HealthResponse

app = FastAPI(
    title="Reason Search",
    description="Reasoned multi-source research orchestrator",
    version="0.1.0",
)

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origin_list,
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(research.router)


@app.get("/api/health", response_model=HealthResponse)
async def health():
    return {"status": "ok", "service": "reason-search"}
