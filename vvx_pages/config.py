"""Build configuration pulled from environment variables via pydantic."""
from zoneinfo import ZoneInfo, ZoneInfoNotFoundError

from pydantic import AliasChoices, Field, field_validator
from pydantic_settings import BaseSettings, SettingsConfigDict

from utils.logging_utils import get_tagged_logger, mask_secret
logger = get_tagged_logger(__name__, tag="config")


class Settings(BaseSettings):
    """Environment-driven configuration for one page build.

    Credentials and force flags also accept the unprefixed names the
    scheduler has always exported (WEATHERAPI_KEY, FORCE_TIDES, ...).
    """
    model_config = SettingsConfigDict(env_prefix="VVX_", extra="ignore", populate_by_name=True)

    latitude: float = Field(50.4, ge=-90, le=90)
    longitude: float = Field(-5.0, ge=-180, le=180)
    tide_latitude: float | None = Field(None, ge=-90, le=90)
    tide_longitude: float | None = Field(None, ge=-180, le=180)
    timezone: str = "Europe/London"

    cache_path: str = "data/cache.json"
    output_dir: str = "."

    weatherapi_key: str | None = Field(
        None, validation_alias=AliasChoices("VVX_WEATHERAPI_KEY", "WEATHERAPI_KEY")
    )
    stormglass_key: str | None = Field(
        None, validation_alias=AliasChoices("VVX_STORMGLASS_KEY", "STORMGLASS_KEY")
    )
    astronomy_query: str | None = None

    force_astronomy: bool = Field(
        False, validation_alias=AliasChoices("VVX_FORCE_ASTRONOMY", "FORCE_ASTRONOMY")
    )
    force_tides: bool = Field(
        False, validation_alias=AliasChoices("VVX_FORCE_TIDES", "FORCE_TIDES")
    )

    request_timeout_seconds: float = Field(10.0, gt=0)
    page_refresh_seconds: int = Field(10, ge=1)
    stylesheet_href: str = "css/vvx.css?v=1"

    @field_validator("timezone", mode="after")
    @classmethod
    def validate_timezone(cls, v: str) -> str:
        """Reject zone names the tz database does not know."""
        try:
            ZoneInfo(v)
        except (ZoneInfoNotFoundError, ValueError) as exc:
            raise ValueError(f"Unknown time zone '{v}'") from exc
        return v

    @field_validator("weatherapi_key", "stormglass_key", "astronomy_query", mode="after")
    @classmethod
    def blank_to_none(cls, v: str | None) -> str | None:
        """Treat empty strings (unset CI secrets) as missing."""
        if v is None or not v.strip():
            return None
        return v.strip()

    @property
    def tide_coordinates(self) -> tuple[float, float]:
        """Coordinates used for the tide query, falling back to the base location."""
        lat = self.tide_latitude if self.tide_latitude is not None else self.latitude
        lng = self.tide_longitude if self.tide_longitude is not None else self.longitude
        return lat, lng

    @property
    def resolved_astronomy_query(self) -> str:
        """Location query for the astronomy API."""
        return self.astronomy_query or f"{self.latitude},{self.longitude}"

    def describe(self) -> dict:
        """Loggable summary with credentials masked."""
        data = self.model_dump(exclude={"weatherapi_key", "stormglass_key"})
        data["weatherapi_key"] = mask_secret(self.weatherapi_key)
        data["stormglass_key"] = mask_secret(self.stormglass_key)
        return data


settings = Settings()


if __name__ == "__main__":
    import json
    logger.logger.setLevel("DEBUG")
    logger.debug(f"Loaded settings: {json.dumps(settings.describe(), indent=4)}")
