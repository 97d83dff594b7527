"""Database-agnostic type definitions for SQLAlchemy models.

This module provides type definitions that work with both SQLite and PostgreSQL.
"""
from sqlalchemy import Numeric, Uuid

# Native UUID on PostgreSQL, CHAR(32) on SQLite
UUIDType = Uuid

# Money in INR with paise precision
MoneyType = Numeric(14, 2)

# Percentage rates (0.00 - 100.00)
RateType = Numeric(5, 2)
