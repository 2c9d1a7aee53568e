from typing import List, Literal, Optional

from pydantic_settings import BaseSettings, SettingsConfigDict

class Settings(BaseSettings):
    """
    Configuration for the facilitator service.
    Reads environment variables with the 'FACILITATOR_' prefix (e.g. FACILITATOR_DECISION_ENGINE).
    """
    model_config = SettingsConfigDict(env_prefix='FACILITATOR_', env_file='.env', extra='ignore')

    LOG_LEVEL: str = "INFO"

    SERVICE_NAME: str = "ai-facilitator"

    DECISION_ENGINE: Literal["rules", "llm"] = "rules"

    LLM_PROVIDER: Literal["gemini", "ollama"] = "gemini"

    GEMINI_API_KEY: Optional[str] = None
    GEMINI_MODEL: str = "gemini-2.5-flash"
    GEMINI_BASE_URL: str = "https://generativelanguage.googleapis.com/v1beta"

    OLLAMA_BASE_URL: str = "http://ollama:11434/api"
    OLLAMA_MODEL_NAME: str = "mistral:7b"

    LLM_TIMEOUT_SECONDS: float = 20.0
    LLM_TEMPERATURE: float = 0.4

    CORS_ORIGINS: List[str] = ["*"]


settings = Settings()
