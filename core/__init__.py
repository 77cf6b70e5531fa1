"""Core utilities and configuration for the BounceBan verifier"""
from core.config import settings
from core.exceptions import ConfigurationError, PollExhaustedError, ValidationError, VerifierError
from core.logging import get_logger

__all__ = [
    "settings",
    "get_logger",
    "VerifierError",
    "ValidationError",
    "ConfigurationError",
    "PollExhaustedError",
]
