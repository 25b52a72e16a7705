"""
flowsync - keeps an automation platform's workflows and credential
definitions in sync with a secret-free file representation.
"""

__version__ = "1.0.0"
