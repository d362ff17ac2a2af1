"""Measurement specification and sample-round tracking engine."""

import logging

logger = logging.getLogger("sizing")
if not logger.handlers:
    logging.basicConfig(
        level=logging.INFO,
        format="%(asctime)s %(levelname)s [%(name)s] %(message)s",
    )


__all__ = ["logger"]
