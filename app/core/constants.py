"""
Service-level constants
"""

SERVICE_NAME = "tardiness-engine"
DEFAULT_VERSION = "1.0.0"
