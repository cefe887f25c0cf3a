from .production_queries import ProductionQueries

__all__ = ["ProductionQueries"]
