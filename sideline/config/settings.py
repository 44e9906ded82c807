from pydantic_settings import BaseSettings, SettingsConfigDict
from typing import Optional, List


class Settings(BaseSettings):
    # Twilio Verify (required; startup aborts when any is missing)
    twilio_account_sid: str
    twilio_auth_token: str
    twilio_verify_service_sid: str

    # Supabase (groups, group messages, invites)
    supabase_url: str = ""
    supabase_key: str = ""
    supabase_service_role_key: Optional[str] = None  # Used by the invite sweeper to bypass RLS

    # Firestore (direct messages); credentials come from GOOGLE_APPLICATION_CREDENTIALS
    firestore_project_id: Optional[str] = None
    firestore_messages_collection: str = "messages"

    # Groups
    membership_max_retries: int = 5
    invite_ttl_hours: int = 72
    invite_sweep_interval_seconds: int = 300  # 0 disables the sweeper

    # App
    app_name: str = "sideline-backend"
    port: int = 3001
    debug: bool = False
    environment: str = "development"  # development | staging | production
    log_level: str = "INFO"
    cors_origins: str = "http://localhost:3000,http://localhost:5173,http://127.0.0.1:3000,http://127.0.0.1:5173"
    rate_limit: str = "100/minute"  # slowapi format, e.g. "100/minute"
    verification_rate_limit: str = "5/minute"

    @property
    def is_production(self) -> bool:
        return self.environment == "production"

    def get_cors_origins_list(self) -> List[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

    model_config = SettingsConfigDict(
        env_file=".env",
        case_sensitive=False,
        env_prefix="",  # No prefix needed
        extra="ignore"
    )


settings = Settings()
