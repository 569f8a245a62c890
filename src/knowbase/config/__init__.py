"""Application configuration"""

import logging
from dotenv import load_dotenv

from .loader import CONFIG_ENV, load_raw_config
from .core import Core
from .providers import Providers
from .retrieval import Retrieval

load_dotenv()

LOG_FORMAT = "[%(asctime)s] [%(levelname)s] [%(name)s]: %(message)s"
DATE_FORMAT = "%Y-%m-%d %H:%M:%S"

logging.basicConfig(format=LOG_FORMAT, datefmt=DATE_FORMAT, level=logging.INFO)
logging.getLogger("httpx").setLevel(logging.WARNING)


class Config:
    """Bundle of settings sections built from one raw config dict."""

    def __init__(self, raw: dict | None = None) -> None:
        self.core = Core(raw)
        self.providers = Providers(raw)
        self.retrieval = Retrieval(raw)

    @classmethod
    def load(cls, path=None) -> "Config":
        return cls(load_raw_config(path))


__all__ = ["Core", "Providers", "Retrieval", "Config", "CONFIG_ENV", "load_raw_config", "LOG_FORMAT", "DATE_FORMAT"]
