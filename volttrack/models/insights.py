"""Insight models returned by the text-generation collaborator."""

from typing import List

from pydantic import BaseModel, Field


class KeyMetrics(BaseModel):
    """Headline figures picked out by the model."""
    totalValueExposure: str = ""
    mostActiveCustomer: str = ""


class MisInsights(BaseModel):
    """Narrative summary of the record set."""
    summary: str
    risks: List[str] = Field(default_factory=list)
    opportunities: List[str] = Field(default_factory=list)
    keyMetrics: KeyMetrics = Field(default_factory=KeyMetrics)
