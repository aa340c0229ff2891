from pydantic_settings import BaseSettings, SettingsConfigDict


class Settings(BaseSettings):
    """Application configuration loaded from environment variables."""

    model_config = SettingsConfigDict(env_file=".env", extra="ignore")

    app_env: str = "dev"
    log_level: str = "INFO"

    base_url: str = "https://app.procore.com"
    host_domain: str = "procore.com"
    http_timeout_seconds: int = 30

    max_consecutive_errors: int = 3
    max_pages: int = 100
    commitment_max_pages: int = 50
    drawings_per_page: int = 500
    default_per_page: int = 100

    scan_surface: str = "playwright"
    scan_tick_seconds: float = 0.6
    scan_scroll_step: int = 800
    scan_stable_threshold: int = 5
    scan_timeout_seconds: float = 60.0
    scan_bottom_margin: int = 100
    scan_min_overflow: int = 100
    expand_click_delay_seconds: float = 0.5
    expand_settle_seconds: float = 1.5
    expand_all_settle_seconds: float = 4.0

    browser_user_data_dir: str = ""
    browser_headless: bool = False
    start_url: str = ""
    run_mode: str = "scan"
    run_target: str = "drawings"
