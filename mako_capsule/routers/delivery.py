"""Pieces shared by the capsule-producing routers."""

from typing import Optional, Union

from fastapi import Request, Response
from slowapi import Limiter
from slowapi.util import get_remote_address

from mako_capsule.config import GeneratorConfig, get_config
from mako_capsule.models.capsule import GenerationResult
from mako_capsule.services.negotiation import accepts_capsule, etag_matches, is_ai_bot

limiter = Limiter(key_func=get_remote_address)


def request_config(max_tokens: Optional[int] = None) -> GeneratorConfig:
    """The process configuration with a per-request token budget applied."""
    config = get_config()
    if max_tokens is not None:
        config = config.model_copy(update={"max_tokens": max_tokens})
    return config


def capsule_response(request: Request, result: GenerationResult) -> Union[GenerationResult, Response]:
    """Serve *result* as capsule text when the client asks for it, JSON otherwise.

    Known AI crawlers get capsule text without asking. Capsule responses
    carry the capsule headers and ETag and honour ``If-None-Match`` with a
    bodiless 304.
    """
    by_accept = accepts_capsule(request.headers.get("accept"))
    if not by_accept and not is_ai_bot(request.headers.get("user-agent")):
        return result
    vary = "Accept" if by_accept else "Accept, User-Agent"

    if etag_matches(request.headers.get("if-none-match"), result.etag):
        return Response(
            status_code=304,
            headers={
                "ETag": result.etag,
                "Vary": vary,
                "Cache-Control": result.headers.get("Cache-Control", ""),
            },
        )

    headers = dict(result.headers)
    headers["ETag"] = result.etag
    headers["Vary"] = vary
    return Response(content=result.content, headers=headers)
