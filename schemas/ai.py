from typing import Optional

from pydantic import BaseModel, Field


class AIModel(BaseModel):
    id: str
    name: str
    provider: str


class ProviderKeys(BaseModel):
    openai: Optional[str] = None
    anthropic: Optional[str] = None
    xai: Optional[str] = None
    apollo: Optional[str] = None

    def get(self, provider: str) -> Optional[str]:
        value = getattr(self, provider, None)
        return value if isinstance(value, str) and value.strip() else None


class ModelTestResult(BaseModel):
    model_id: str
    success: bool
    message: Optional[str] = None
    error: Optional[str] = None
    elapsed_s: float = Field(default=0.0, description="wall time of the generation call")
