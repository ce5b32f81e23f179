import logging

from fastapi import APIRouter, HTTPException, Request

from mako_capsule.models.capsule import GenerationResult
from mako_capsule.models.request import GenerateRequest
from mako_capsule.routers.delivery import capsule_response, limiter, request_config
from mako_capsule.services.generator import generate

logger = logging.getLogger(__name__)

router = APIRouter()


@router.post("/generate", response_model=GenerationResult, summary="Generate a capsule from supplied HTML")
@limiter.limit("30/minute")
async def generate_capsule(request: Request, body: GenerateRequest):
    """Run the capsule pipeline on an already rendered document.

    Clients that list ``text/mako+markdown`` in ``Accept`` receive the
    serialized capsule with its delivery headers instead of JSON.
    """
    logger.info("Generate request received", extra={"url": body.url, "post_type": body.post_type})

    result = generate(body.to_source(), request_config(body.max_tokens))
    if result is None:
        raise HTTPException(status_code=422, detail="The document has no usable content.")

    return capsule_response(request, result)
