# backend/tillpoint/config.py
from __future__ import annotations
import os


class Config:
    # Optional "SECRET_KEY", with default dev key
    SECRET_KEY = os.environ.get("SECRET_KEY", "dev-secret-key-change-me")

    # SQLite DB stored in backend/instance/tillpoint.sqlite3
    SQLALCHEMY_DATABASE_URI = os.environ.get(
        "DATABASE_URL", #optional alternative location
        "sqlite:///tillpoint.sqlite3", #default local location
    )
    SQLALCHEMY_TRACK_MODIFICATIONS = False

    LOG_LEVEL = os.environ.get("LOG_LEVEL", "INFO")

    # Checkout commit behaviour
    # "reject": refuse a sale that would drive stock below zero
    # "clamp": floor stock at zero and record a stock discrepancy
    CHECKOUT_OVERSELL_POLICY = os.environ.get("CHECKOUT_OVERSELL_POLICY", "reject")
    CHECKOUT_COMMIT_ATTEMPTS = int(os.environ.get("CHECKOUT_COMMIT_ATTEMPTS", "3"))
    CHECKOUT_RETRY_BACKOFF = float(os.environ.get("CHECKOUT_RETRY_BACKOFF", "0.1"))
    # Upper bound on how long a single database call may block (lock wait / statement)
    CHECKOUT_DB_TIMEOUT_SECONDS = float(os.environ.get("CHECKOUT_DB_TIMEOUT_SECONDS", "5"))

    # Loyalty: points credited per whole currency unit of the sale total
    LOYALTY_POINTS_PER_UNIT = int(os.environ.get("LOYALTY_POINTS_PER_UNIT", "1"))

    RECEIPT_PREFIX = os.environ.get("RECEIPT_PREFIX", "RCP")


def engine_options_for(uri: str, timeout_seconds: float) -> dict:
    """
    Engine options that bound how long a database call can block.

    SQLite: busy timeout on lock acquisition.
    PostgreSQL: lock_timeout and statement_timeout for every session.
    """
    if uri.startswith("sqlite"):
        return {"connect_args": {"timeout": timeout_seconds}}
    if uri.startswith("postgresql"):
        ms = int(timeout_seconds * 1000)
        return {"connect_args": {"options": f"-c statement_timeout={ms} -c lock_timeout={ms}"}}
    return {}
