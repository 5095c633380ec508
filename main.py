# main.py
# ---------------------------------------------------------------
# FastAPI app: sitemap generation API + generated file serving.
# Run with: uvicorn main:app
# ---------------------------------------------------------------

from fastapi import FastAPI

from config_paths import load_settings
from logging_setup import setup_logging, get_app_logger
from routers.error_handlers import register_error_handlers
from routers.sitemap_routes import router as sitemap_router

# --- Logging ---
settings = load_settings()
setup_logging(log_level=settings.log_level, log_dir=settings.log_dir)
logger = get_app_logger("sitemap.app")


def create_app() -> FastAPI:
    app = FastAPI(
        title="Sitemap Creator",
        docs_url=None,
        redoc_url=None,
    )
    register_error_handlers(app)
    app.include_router(sitemap_router)

    @app.get("/health", include_in_schema=False)
    def health():
        return {"status": "ok"}

    return app


app = create_app()
logger.info("🚀 Sitemap app ready (output: %s)", settings.output_dir)
