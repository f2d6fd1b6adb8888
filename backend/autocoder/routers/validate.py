from fastapi import APIRouter

from autocoder.schemas.mod import IniValidateRequest
from autocoder.schemas.pipeline import ValidationResult
from autocoder.services.validation_service import validate_ini

router = APIRouter(prefix="/api/v1/validate", tags=["validate"])


@router.post("", response_model=ValidationResult)
async def validate(data: IniValidateRequest):
    return validate_ini(data.content)
