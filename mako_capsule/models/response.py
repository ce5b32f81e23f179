from typing import Any, Dict, Optional

from pydantic import BaseModel

from mako_capsule.models.capsule import ValidationResult


class ValidateResponse(BaseModel):
    frontmatter: Optional[Dict[str, Any]]
    body_tokens: int
    validation: ValidationResult
