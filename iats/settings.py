"""Settings for the iATS client, read from the environment."""
import logging.config
import os
from pathlib import Path

import environ

BASE_DIR = Path(__file__).resolve(strict=True).parent.parent
env = environ.Env()

ENVIRONMENT = os.getenv("ENVIRONMENT", "local")
env_files = [
    BASE_DIR / f".envs/.{ENVIRONMENT}/.iats",
]

for env_file in env_files:
    if env_file.exists():
        environ.Env.read_env(env_file)

# CREDENTIALS
# ------------------------------------------------------------------------------
IATS_AGENT_CODE = env("IATS_AGENT_CODE", default="")
IATS_PASSWORD = env("IATS_PASSWORD", default="")
# NA or UK
IATS_SERVER_ID = env("IATS_SERVER_ID", default="NA")

# TRANSPORT
# ------------------------------------------------------------------------------
IATS_SERVERS = {
    "NA": "https://www.iatspayments.com",
    "UK": "https://www.uk.iatspayments.com",
}
# WSDL cache lifetime in seconds, 0 disables the cache
IATS_WSDL_CACHE = env.int("IATS_WSDL_CACHE", default=0)
IATS_SOAP_CACHE_PATH = env("IATS_SOAP_CACHE_PATH", default="/tmp/iats-soap-cache.db")
IATS_TRANSPORT_TIMEOUT = env.int("IATS_TRANSPORT_TIMEOUT", default=60)
IATS_OPERATION_TIMEOUT = env.int("IATS_OPERATION_TIMEOUT", default=60)
IATS_VERIFY_SSL = env.bool("IATS_VERIFY_SSL", default=True)

# LOGGING
# ------------------------------------------------------------------------------
LOGGING = {
    "version": 1,
    "disable_existing_loggers": False,
    "formatters": {
        "verbose": {
            "format": "%(levelname)s %(asctime)s %(module)s %(process)d %(thread)d %(message)s",
        },
    },
    "handlers": {
        "console": {
            "level": "DEBUG",
            "class": "logging.StreamHandler",
            "formatter": "verbose",
        },
    },
    "loggers": {
        "iats.requests": {
            "level": env("IATS_REQUEST_LOG_LEVEL", default="INFO"),
            "handlers": ["console"],
            "propagate": False,
        },
    },
    "root": {"level": "INFO", "handlers": ["console"]},
}


def configure_logging():
    logging.config.dictConfig(LOGGING)
