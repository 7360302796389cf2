import logging
from typing import List
from pydantic import Field
from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """
    Service settings loaded from environment variables (prefix ``TRAFFIC_SIM_``).

    These configure the process hosting the engine, not a simulation run;
    run parameters live in SimulationConfig.
    """

    model_config = SettingsConfigDict(env_prefix="TRAFFIC_SIM_", env_file=".env", extra="ignore")

    LOG_LEVEL: str = "INFO"
    DEFAULT_SEED: int = Field(default=42, description="Seed for the kernel created at startup")
    MAX_STEPS_PER_REQUEST: int = Field(
        default=3600, description="Upper bound on steps a single /step request may advance"
    )
    CORS_ORIGINS: List[str] = ["*"]


settings = Settings()


def configure_logging(level: str = settings.LOG_LEVEL):
    logging.basicConfig(
        level=getattr(logging, level.upper(), logging.INFO),
        format="%(asctime)s - %(name)s - %(levelname)s - %(message)s",
    )
