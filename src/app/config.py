"""Configuration management using Pydantic settings."""

from pathlib import Path

from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application settings loaded from environment variables."""

    model_config = SettingsConfigDict(
        env_file=".env",
        env_file_encoding="utf-8",
        case_sensitive=False,
        extra="ignore",
    )

    # Application
    app_name: str = "Befahrer Mapper"
    debug: bool = False

    # Server
    host: str = "0.0.0.0"
    port: int = 8000

    # Storage layout (relative to data_root)
    data_root: Path = Path("./data")
    projects_dir: str = "Befahrungsprojekte"
    kml_dir: str = "KML-Files"
    users_dir: str = "User"
    general_user: str = "general"

    # Layer styling
    main_line_weight: int = 3           # shadow is drawn at twice this width
    main_color: str = "#ff0000"
    main_opacity: float = 1.0           # same for dropped and project files

    # Notifications
    notification_duration_ms: int = 5000

    # Remote KML source; empty reads project files from data_root directly
    remote_base_url: str = ""
    fetch_timeout: float = 15.0

    # Initial map view (Germany)
    map_center_lat: float = 51.1657
    map_center_lng: float = 10.4515
    map_zoom: int = 6


settings = Settings()
