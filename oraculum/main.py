import os
from contextlib import asynccontextmanager

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import FileResponse
from fastapi.staticfiles import StaticFiles

from oraculum.config import REPO_ROOT, Settings, configure_logging, load_env

# Load environment variables from .env file
load_env()
settings = Settings.from_env()
configure_logging(settings.log_level)

from oraculum.ai import create_client
from oraculum.sessions import SessionRegistry
from oraculum.routes.oracle_routes import router as oracle_router

FRONTEND_DIR = os.path.join(str(REPO_ROOT), "frontend")


@asynccontextmanager
async def lifespan(app: FastAPI):
    yield
    await app.state.registry.close()


app = FastAPI(title="Oraculum", version="0.1.0", lifespan=lifespan)
app.state.registry = SessionRegistry(create_client(settings), max_sessions=settings.max_sessions)

app.include_router(oracle_router)

app.add_middleware(
    CORSMiddleware,
    allow_origins=["*"],
    allow_credentials=False,
    allow_methods=["*"],
    allow_headers=["*"],
)

# Static shell: page, script, service worker, manifest
app.mount("/static", StaticFiles(directory=FRONTEND_DIR), name="frontend_static")

@app.get("/")
def index():
    return FileResponse(os.path.join(FRONTEND_DIR, "index.html"))

@app.get("/app.js")
def app_js():
    return FileResponse(os.path.join(FRONTEND_DIR, "app.js"), media_type="text/javascript")

@app.get("/sw.js")
def service_worker():
    # Served from the root so the worker's scope covers the whole app.
    return FileResponse(
        os.path.join(FRONTEND_DIR, "sw.js"),
        media_type="text/javascript",
        headers={"Cache-Control": "no-cache"},
    )

@app.get("/manifest.json")
def manifest():
    return FileResponse(os.path.join(FRONTEND_DIR, "manifest.json"), media_type="application/manifest+json")

@app.get("/health")
def health():
    return {"ok": True, "provider": settings.provider, "configured": bool(settings.api_key)}


if __name__ == "__main__":
    import uvicorn

    uvicorn.run("oraculum.main:app", host=os.getenv("HOST", "127.0.0.1"), port=int(os.getenv("PORT", "8000")))
