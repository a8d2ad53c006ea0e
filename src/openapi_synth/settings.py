"""Process-level settings loaded from environment variables."""

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Environment overrides for the command line (prefix ``OPENAPI_SYNTH_``)."""

    model_config = SettingsConfigDict(env_prefix="OPENAPI_SYNTH_", case_sensitive=False)

    # Example generation; None keeps whatever the manifest says
    compose_from_properties: bool | None = None
    generate_defaults: bool | None = None

    # Logging
    log_level: str = "WARNING"

    # Output
    output_format: str = "json"
