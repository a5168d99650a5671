"""Prompts package"""
from .insights_prompt import get_insights_prompt
from .assistant_prompt import get_assistant_prompt

__all__ = ['get_insights_prompt', 'get_assistant_prompt']
