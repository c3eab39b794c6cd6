"""Database package: models and session management."""
from finsync_proxy.db.models import (CredentialRecord, InvestorProfile,
                                     PortfolioHolding, as_utc, utcnow)
from finsync_proxy.db.sessions import create_db_engine, init_db, session_scope

__all__ = [
    "CredentialRecord",
    "InvestorProfile",
    "PortfolioHolding",
    "as_utc",
    "create_db_engine",
    "init_db",
    "session_scope",
    "utcnow",
]
