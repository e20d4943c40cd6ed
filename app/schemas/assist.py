from pydantic import BaseModel, Field

# Request fields are optional so that a missing field becomes a 400 with the
# action's own message instead of FastAPI's generic 422.


class TranslateRequest(BaseModel):
    text: str | None = None
    target_language: str | None = Field(None, alias="targetLanguage")

    model_config = {"populate_by_name": True}


class TranslateResponse(BaseModel):
    detected_language: str = Field(alias="detectedLanguage")
    translated_text: str = Field(alias="translatedText")

    model_config = {"populate_by_name": True}


class SummarizeRequest(BaseModel):
    text: str | None = None


class SummarizeResponse(BaseModel):
    summary: str


class SymptomsRequest(BaseModel):
    symptoms: str | None = None


class SymptomsResponse(BaseModel):
    analysis: str


class ErrorResponse(BaseModel):
    error: str
    details: str | None = None
