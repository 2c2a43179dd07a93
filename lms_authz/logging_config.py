from __future__ import annotations

import logging


def configure_app_logging(level: str = "INFO") -> None:
    """
    Set the level for the ``lms_authz`` logger tree.

    Uvicorn installs the handlers; this only adjusts our package's verbosity.
    Set ``LMS_AUTHZ_LOG_LEVEL=DEBUG`` to see individual access decisions.
    """

    normalized = level.upper()
    logging.getLogger("lms_authz").setLevel(normalized)
    logging.getLogger("lms_authz").propagate = True
