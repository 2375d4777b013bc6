"""Translation API for the chat surface. Responses carry a confidence score the UI uses to offer a retry."""
from typing import Any

from fastapi import APIRouter, Depends
from pydantic import BaseModel, ConfigDict, Field

from mandi_notify.api.deps import get_translation_backend
from mandi_notify.core.errors import MandiNotifyError, error_to_http
from mandi_notify.services.translation import TranslationBackend, translate_text

router = APIRouter()


class TranslateBody(BaseModel):
    model_config = ConfigDict(populate_by_name=True)

    text: str
    from_lang: str = Field(..., alias="fromLang")
    to_lang: str = Field(..., alias="toLang")


@router.post("/translate")
def translate(body: TranslateBody, backend: TranslationBackend = Depends(get_translation_backend)) -> dict[str, Any]:
    try:
        result = translate_text(backend, body.text, body.from_lang, body.to_lang)
    except MandiNotifyError as e:
        raise error_to_http(e)
    return result.to_dict()
