# insurdash/__init__.py
"""
Insurance Business Performance Dashboard - Core Package

Contains the shared plumbing and the performance engine:
- config: Configuration management (local .env + Streamlit Cloud)
- db: PostgreSQL connection management with pooling
- performance: metrics aggregation, period comparison, KPIs and exports

Usage:
    from insurdash.config import config
    from insurdash.performance import process_period, build_kpis
"""

__version__ = '1.0.0'
