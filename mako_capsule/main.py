import logging
import logging.config

from fastapi import FastAPI, Request
from fastapi.responses import JSONResponse
from slowapi import _rate_limit_exceeded_handler
from slowapi.errors import RateLimitExceeded

from mako_capsule.config import GENERATOR_VERSION, get_config
from mako_capsule.routers.capsule import router as capsule_router
from mako_capsule.routers.delivery import limiter
from mako_capsule.routers.generate import router as generate_router
from mako_capsule.routers.sitemap import router as sitemap_router
from mako_capsule.routers.validate import router as validate_router

logging.config.dictConfig(
    {
        "version": 1,
        "disable_existing_loggers": False,
        "formatters": {
            "json": {
                "format": '{"time": "%(asctime)s", "level": "%(levelname)s", "logger": "%(name)s", "message": "%(message)s"}',
            },
        },
        "handlers": {
            "console": {
                "class": "logging.StreamHandler",
                "formatter": "json",
            },
        },
        "root": {"level": get_config().log_level.upper(), "handlers": ["console"]},
    }
)

logger = logging.getLogger(__name__)

app = FastAPI(
    title="MAKO Capsule API",
    description="Turns rendered HTML into token-bounded content capsules: frontmatter plus Markdown.",
    version=GENERATOR_VERSION,
)

# Rate-limiting state
app.state.limiter = limiter
app.add_exception_handler(RateLimitExceeded, _rate_limit_exceeded_handler)


@app.exception_handler(Exception)
async def generic_exception_handler(request: Request, exc: Exception) -> JSONResponse:
    logger.exception("Unhandled exception for %s", request.url)
    return JSONResponse(status_code=500, content={"detail": "An unexpected error occurred."})


app.include_router(generate_router)
app.include_router(capsule_router)
app.include_router(validate_router)
app.include_router(sitemap_router)


@app.get("/", summary="Health check")
async def root() -> dict:
    return {"message": "MAKO capsule generator is running", "version": GENERATOR_VERSION}
