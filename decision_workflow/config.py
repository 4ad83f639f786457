"""
Configuration Management Module

Provides centralized configuration using pydantic-settings for environment-based configuration.
"""

from pydantic_settings import BaseSettings
from typing import Optional


class DecisionWorkflowConfig(BaseSettings):
    """Decision workflow engine configuration"""

    # API configuration
    api_host: str = "0.0.0.0"
    api_port: int = 8095

    # Logging configuration
    log_level: str = "INFO"
    log_format: str = "json"  # json or text
    log_file: Optional[str] = None  # If None, logs to stderr

    # Identity used when the caller does not pass an approver
    default_approver: str = "current_user"

    # Insight heuristics
    prediction_horizon_days: int = 15
    prediction_confidence: float = 0.75
    efficiency_score: float = 0.85

    # Feature flags
    enable_audit_logging: bool = True
    enable_notifications: bool = True

    class Config:
        env_prefix = "DECISION_WORKFLOW_"
        env_file = ".env"
        case_sensitive = False


# Global configuration instance
config = DecisionWorkflowConfig()


def get_config() -> DecisionWorkflowConfig:
    """Get global configuration instance"""
    return config


def reload_config() -> DecisionWorkflowConfig:
    """Reload configuration from environment"""
    global config
    config = DecisionWorkflowConfig()
    return config
