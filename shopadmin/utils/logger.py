"""Shared logger for the shop admin backend.

Components ask for a child logger (``get_logger("planner")``) so log lines
show which part of a turn produced them. The level comes from LOG_LEVEL.
"""
import logging
import os

logger = logging.getLogger("shopadmin")
if not logger.handlers:
    h = logging.StreamHandler()
    fmt = logging.Formatter("%(asctime)s %(levelname)s [%(name)s] %(message)s")
    h.setFormatter(fmt)
    logger.addHandler(h)
    logger.setLevel(os.getenv("LOG_LEVEL", "INFO").upper())
    logger.propagate = False

def get_logger(name=None):
    return logger.getChild(name) if name else logger
