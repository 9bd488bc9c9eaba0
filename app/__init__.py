"""
ShardoX API Application Package

REST API whose tool endpoints sit behind API-key authentication, a
per-identity daily quota and a capped usage log.

Package Structure:
- config.py: Application configuration using Pydantic Settings
- database.py: SQLAlchemy engine and session management
- exceptions.py: Domain errors and their HTTP mapping
- main.py: FastAPI application factory and configuration
- dependencies.py: Dependency injection functions (JWT, API key)
- models/: SQLAlchemy ORM models
- schemas/: Pydantic request/response schemas
- routers/: API route handlers
- services/: Business logic (credentials, quota, usage, authorization)
- utils/: Helper functions
"""

__version__ = "1.0.0"
