"""
Utility modules for the roadmap backend.

This package contains shared utilities used across the application:
- logging_config: Named loggers with JSON/console formatters
- rate_limit: Shared slowapi limiter
"""
