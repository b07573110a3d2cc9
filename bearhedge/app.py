import os
from dotenv import load_dotenv

# Load environment variables from .env file
load_dotenv()

from fastapi import FastAPI
from fastapi.middleware.cors import CORSMiddleware
from fastapi.responses import JSONResponse, FileResponse
from .routers import tofu as tofu_router
from .routers import track as track_router
from .middleware.logging import AccessLogMiddleware
from .services import registry
from .services.util.widget_defaults import DATA_DIR, autostart_enabled


app = FastAPI(title="bearhedge-widgets", version="0.1.0")

# Configure CORS - localhost for development, production domains for production
app_env = os.getenv("APP_ENV")
is_dev = app_env is None or app_env.lower() in {"dev", "development"}

if is_dev:
    app.add_middleware(
        CORSMiddleware,
        allow_origin_regex=r"^https?://(localhost|127\.0\.0\.1)(:\d+)?$",
        allow_methods=["GET"],
        allow_headers=["*"],
        max_age=86400,
    )
else:
    allowed = [
        "https://bearhedge.com",
        "https://www.bearhedge.com",
    ]
    preview = os.getenv("PREVIEW_ORIGIN")
    if preview:
        allowed.append(preview)

    app.add_middleware(
        CORSMiddleware,
        allow_origins=allowed,
        allow_methods=["GET"],
        allow_headers=["*"],
        max_age=86400,
    )

app.add_middleware(AccessLogMiddleware)

app.include_router(tofu_router.router)
app.include_router(track_router.router)


@app.on_event("startup")
async def _start_widgets() -> None:
    if autostart_enabled():
        await registry.start_all()


@app.on_event("shutdown")
async def _stop_widgets() -> None:
    await registry.stop_all()


@app.get("/__health")
def health():
    return {"ok": True}


# Widget documents (calendar + manifest) served from the data directory
@app.get("/data/{path:path}")
def widget_data(path: str):
    fp = (DATA_DIR / path).resolve()
    if not fp.is_relative_to(DATA_DIR.resolve()) or not fp.is_file():
        return JSONResponse({"error": "not found"}, status_code=404)
    return FileResponse(fp, media_type="application/json")


@app.get("/")
def root():
    return {"message": "bearhedge widgets API is running. See /__health, /v1/tofu/state and /v1/track/widget."}
