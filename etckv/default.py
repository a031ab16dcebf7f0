"""
This module contains the default values for etckv configuration.
"""

from .util import attrdict

__all__ = ["PORT", "CFG"]

PORT = 4001

# This default configuration will be used to supplement whatever
# configuration you use.
# It is "complete" in the sense that etckv will never die
# due to a KeyError caused by a missing config value.

CFG = attrdict(
    logging={  # a magic incantation
        "version": 1,
        "loggers": {"httpx": {"level": "WARNING"}, "httpcore": {"level": "WARNING"}},
        "root": {"handlers": ["stderr"], "level": "INFO"},
        "handlers": {
            "stderr": {
                "class": "logging.StreamHandler",
                "level": "DEBUG",
                "formatter": "std",
                "stream": "ext://sys.stderr",
            }
        },
        "formatters": {
            "std": {
                "class": "etckv.util.TimeOnlyFormatter",
                "format": "%(asctime)s %(levelname)s:%(name)s:%(message)s",
            }
        },
        "disable_existing_loggers": False,
    },
    connect=attrdict(
        # client: controls how to talk to the etcd server
        host="127.0.0.1",
        port=PORT,
        ssl=False,  # True, or a ssl.SSLContext
        prefix="/v2/keys",  # all keys live below this URL path
        timeout=10,  # for one-shot requests; watches never time out
        transport=None,  # an httpx transport to use instead of the network
    ),
    watch=attrdict(
        buffer=10,  # events queued for a slow reader
    ),
)
