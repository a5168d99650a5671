"""Models Package - Data models for the transformer MIS."""

from .transformer_record import RecordStatus, TransformerRecord, TransformerDraft
from .insights import KeyMetrics, MisInsights

__all__ = ["RecordStatus", "TransformerRecord", "TransformerDraft", "KeyMetrics", "MisInsights"]
