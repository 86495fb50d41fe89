# config.py

import os

from dotenv import load_dotenv
from pydantic import BaseModel

load_dotenv()


class Settings(BaseModel):
    easyslip_base_url: str = os.getenv("EASYSLIP_BASE_URL", "https://developer.easyslip.com/api/v1")
    easyslip_access_token: str = os.getenv("EASYSLIP_ACCESS_TOKEN", "")
    easyslip_timeout: float = float(os.getenv("EASYSLIP_TIMEOUT", "30"))
    continue_on_fail: bool = os.getenv("EASYSLIP_CONTINUE_ON_FAIL", "false").lower() == "true"
    allowed_origins: str = os.getenv("ALLOWED_ORIGINS", "*")
    log_level: str = os.getenv("LOG_LEVEL", "INFO")

    @property
    def allowed_origin_list(self) -> list:
        return [origin.strip() for origin in self.allowed_origins.split(",") if origin.strip()]


settings = Settings()
