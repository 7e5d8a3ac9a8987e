from __future__ import annotations
import os
from dataclasses import dataclass
from dotenv import load_dotenv

load_dotenv()

@dataclass(frozen=True)
class Settings:
    aws_region: str = os.getenv("AWS_REGION", "us-west-2")
    account_id: str = os.getenv("AWS_ACCOUNT_ID", "")
    stage: str = os.getenv("STAGE", "dev")

    # Key-value store
    kv_backend: str = os.getenv("KV_BACKEND", "dynamodb").lower()
    ddb_table_kv: str = os.getenv("DDB_TABLE_KV", "ecofinds_kv_dev")

    # Auth
    cognito_user_pool_id: str = os.getenv("COGNITO_USER_POOL_ID", "")
    cognito_client_id: str = os.getenv("COGNITO_CLIENT_ID", "")

    # HTTP
    api_prefix: str = os.getenv("API_PREFIX", "/make-server-d588a8d5").rstrip("/")
    cors_origins: str = os.getenv("CORS_ORIGINS", "*")
    log_level: str = os.getenv("LOG_LEVEL", "INFO").upper()

    # Marketplace rules
    eco_points_per_listing: int = int(os.getenv("ECO_POINTS_PER_LISTING", "10"))
    leaderboard_size: int = int(os.getenv("LEADERBOARD_SIZE", "10"))
    seed_enabled: bool = os.getenv("SEED_ENABLED", "true").lower() == "true"

    @property
    def cors_origin_list(self) -> list[str]:
        return [o.strip() for o in self.cors_origins.split(",") if o.strip()]

settings = Settings()
