"""Run the WMS API under uvicorn, configured from the environment."""

import logging
import os
from typing import Any, Dict

import uvicorn

_TRUTHY = {"1", "true", "yes", "on"}


def server_options() -> Dict[str, Any]:
    """
    Keyword arguments for `uvicorn.run`.

    HOST/PORT default to 0.0.0.0:5000. TLS is enabled by SSL_CERTFILE and
    SSL_KEYFILE; forwarded headers are trusted from FORWARDED_ALLOW_IPS.
    """
    options: Dict[str, Any] = {
        "host": os.getenv("HOST", "0.0.0.0"),
        "port": int(os.getenv("PORT", "5000")),
        "reload": os.getenv("RELOAD", "false").lower() in _TRUTHY,
        "log_level": os.getenv("LOG_LEVEL", "info").lower(),
        "proxy_headers": True,
        "forwarded_allow_ips": os.getenv("FORWARDED_ALLOW_IPS", "*"),
    }
    for env_name, option in (("SSL_CERTFILE", "ssl_certfile"), ("SSL_KEYFILE", "ssl_keyfile")):
        value = os.getenv(env_name)
        if value:
            options[option] = value
    return options


def main() -> None:
    options = server_options()
    logging.basicConfig(
        level=options["log_level"].upper(),
        format="%(asctime)s %(levelname)s %(name)s: %(message)s",
    )
    uvicorn.run("wmsdb.main:app", **options)


if __name__ == "__main__":
    main()
