import logging

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware

from autocoder.config import settings
from autocoder.routers import chat, mod, validate, workspaces

logging.basicConfig(
    level=settings.log_level.upper(),
    format="%(asctime)s %(levelname)s %(name)s: %(message)s",
)

app = FastAPI(title="Rusted Warfare Auto-Coder", version="0.1.0")

app.add_middleware(
    CORSMiddleware,
    allow_origins=settings.cors_origins.split(","),
    allow_credentials=True,
    allow_methods=["*"],
    allow_headers=["*"],
)

app.include_router(workspaces.router)
app.include_router(chat.router)
app.include_router(mod.router)
app.include_router(validate.router)


@app.get("/health")
async def health():
    return {"status": "ok"}
