"""Production floor domain: departments, orders, workers and submissions."""
