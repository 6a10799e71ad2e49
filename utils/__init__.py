"""
RuleUnit Utilities
Input validation, error messages, script resolution and console output.
"""

from .defensive import InputValidator, ValidationError

__all__ = ['InputValidator', 'ValidationError']
