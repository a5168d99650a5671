"""
Insights Module
===============
Text-generation collaborator for the dashboard's AI insights and ask panel.
"""

from .service import CollaboratorError, InsightsService, create_openai_client

__all__ = ["CollaboratorError", "InsightsService", "create_openai_client"]
