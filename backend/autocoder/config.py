from pydantic_settings import BaseSettings


# Models that require max_completion_tokens instead of max_tokens
_MAX_COMPLETION_TOKENS_MODELS = {"gpt-5.2", "gpt-5", "o1", "o3", "o3-mini", "o1-mini"}

# Image models that return a URL unless base64 output is requested explicitly
_URL_DEFAULT_IMAGE_MODELS = {"dall-e-2", "dall-e-3"}


class Settings(BaseSettings):
    database_url: str = "postgresql+asyncpg://postgres@localhost:5432/autocoder"
    openai_api_key: str = ""
    openai_base_url: str | None = None
    openai_model: str = "gpt-4.1"
    openai_image_model: str = "gpt-image-1"
    image_size: str = "1024x1024"
    generation_temperature: float = 0.3
    edit_temperature: float = 0.2
    correction_temperature: float = 0.0
    rename_temperature: float = 0.7
    request_timeout_seconds: float = 120.0
    max_retries: int = 2
    default_mod_name: str = "MyRustedMod"
    auto_fix_default: bool = True
    app_env: str = "development"
    cors_origins: str = "http://localhost:5173"
    log_level: str = "INFO"

    model_config = {"env_file": ".env", "env_file_encoding": "utf-8"}

    def max_tokens_param(self, n: int) -> dict:
        """Return the right max-tokens kwarg for the current model."""
        if self.openai_model in _MAX_COMPLETION_TOKENS_MODELS:
            return {"max_completion_tokens": n}
        return {"max_tokens": n}

    def image_format_param(self) -> dict:
        """Ask for inline base64 payloads from models that default to URLs."""
        if self.openai_image_model in _URL_DEFAULT_IMAGE_MODELS:
            return {"response_format": "b64_json"}
        return {}


settings = Settings()
