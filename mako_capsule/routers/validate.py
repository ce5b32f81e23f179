from fastapi import APIRouter, HTTPException, Request

from mako_capsule.models.request import ValidateRequest
from mako_capsule.models.response import ValidateResponse
from mako_capsule.routers.delivery import limiter
from mako_capsule.services.frontmatter import parse_capsule
from mako_capsule.services.tokens import estimate
from mako_capsule.services.validator import validate

router = APIRouter()


@router.post("/validate", response_model=ValidateResponse, summary="Validate a serialized capsule")
@limiter.limit("30/minute")
async def validate_capsule(request: Request, body: ValidateRequest) -> ValidateResponse:
    try:
        frontmatter, capsule_body = parse_capsule(body.content)
    except ValueError as exc:
        raise HTTPException(status_code=400, detail=str(exc))
    if frontmatter is None:
        raise HTTPException(status_code=400, detail="No frontmatter block found.")

    return ValidateResponse(
        frontmatter=frontmatter,
        body_tokens=estimate(capsule_body),
        validation=validate(frontmatter, capsule_body, max_tokens=body.max_tokens),
    )
