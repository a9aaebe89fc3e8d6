import os
from dataclasses import dataclass

from dotenv import load_dotenv

load_dotenv()

# Values shipped inside the Android app (12.6.0). The backend rejects
# requests whose app id was not derived from exactly these.
BACKEND_URL = os.getenv("HOMEGATE_BACKEND_URL", "https://api.homegate.ch")
API_USERNAME = os.getenv("HOMEGATE_API_USERNAME", "hg_android")
API_PASSWORD = os.getenv("HOMEGATE_API_PASSWORD", "6VcGU6ceCFTk8dFm")
APP_SECRET = os.getenv("HOMEGATE_APP_SECRET", "ABuTZrcTGKN4AwjHed3Hj").encode("utf-8")

USER_AGENT = "homegate.ch App Android"
SDK_VERSION = 30
APP_VERSION = f"Homegate/12.6.0/12060003/Android/{SDK_VERSION}"

REQUEST_TIMEOUT = int(os.getenv("HOMEGATE_TIMEOUT", "30"))
SIGNING_SCHEME = os.getenv("HOMEGATE_SIGNING_SCHEME", "hotp-sha256-v1")


@dataclass(frozen=True)
class HomegateConfig:
    backend_url: str = BACKEND_URL
    timeout: float = REQUEST_TIMEOUT
    username: str = API_USERNAME
    password: str = API_PASSWORD
    secret: bytes = APP_SECRET
    user_agent: str = USER_AGENT
    app_version: str = APP_VERSION
    signing_scheme: str = SIGNING_SCHEME

    @classmethod
    def from_env(cls) -> "HomegateConfig":
        return cls()

    def url(self, path: str) -> str:
        return f"{self.backend_url.rstrip('/')}/{path.lstrip('/')}"
