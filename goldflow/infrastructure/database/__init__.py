from .errors import DatabaseError, RepositoryException
from .tracking_store import SqlTrackingStore
from .unit_of_work import (
    SqlModelUnitOfWork,
    UnitOfWorkManager,
    create_db_engine,
    init_db,
)

__all__ = [
    "DatabaseError",
    "RepositoryException",
    "SqlModelUnitOfWork",
    "SqlTrackingStore",
    "UnitOfWorkManager",
    "create_db_engine",
    "init_db",
]
