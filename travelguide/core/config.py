# Configuration for the proximity & narration engine and its collaborators.
# Values can be overridden through TRAVELGUIDE_* environment variables or a .env file.

from pydantic_settings import BaseSettings, SettingsConfigDict
from pydantic import Field
from typing import Optional


class Settings(BaseSettings):
    PROJECT_NAME: str = "Travel Guide"
    VERSION: str = "0.2.0"
    BRIEF_DESCRIPTION: str = "Location-triggered narration of nearby points of interest."

    ENV: str = Field("development", description="Application environment (e.g., production, development)")
    LOG_LEVEL: str = Field("INFO", description="Root log level")

    # --- Proximity ---
    COOLDOWN_PERIOD_MS: int = Field(60000, description="Minimum time before a triggered POI may trigger again")

    # --- Narration ---
    PRIMARY_LANGUAGE: str = Field("sv", description="Default narration language")
    FALLBACK_LANGUAGE: str = Field("en", description="Language retried once when the primary language fails")
    DEFAULT_PITCH: float = 1.0
    DEFAULT_RATE: float = 0.9  # slightly slower for clarity

    # pyttsx3 rate is words per minute; DEFAULT_RATE scales this
    TTS_BASE_WPM: int = 200
    TTS_VOLUME: float = 1.0

    # --- Content source ---
    API_URL: str = Field("https://your-vercel-api.vercel.app", description="Base URL of the POI API")
    API_TIMEOUT: int = 8  # seconds
    FETCH_RADIUS_M: int = 5000
    DEFAULT_POI_RADIUS_M: float = 200.0
    LOCAL_POIS_PATH: Optional[str] = Field(
        None, description="Path to a local POI catalog JSON; defaults to the bundled static/pois.json"
    )

    # --- Location simulation ---
    SIMULATION_INTERVAL_MS: int = 2000
    SIMULATED_ACCURACY_M: float = 10.0

    model_config = SettingsConfigDict(
        env_file=".env",
        env_prefix="TRAVELGUIDE_",
        extra="ignore"
    )

settings = Settings()
