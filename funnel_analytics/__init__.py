"""
Funnel Analytics Backend Package.

FastAPI service that turns raw funnel events (YouTube videos, booked sales
calls, closed sales) into monthly metrics, trends, attribution, funnel
drop-offs, insights and alerts for the funnel dashboard.

Subpackages:
    - api: FastAPI route handlers
    - core: Configuration and dependencies
    - models: Pydantic schemas and enums
    - services: Analytics, ingestion, integrations and dashboard assembly
"""

__version__ = "1.0.0"
