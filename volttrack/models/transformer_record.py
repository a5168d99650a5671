"""
Transformer Record Models

Pydantic models for transformer dispatch records. Records serialize with the
camelCase keys used by the browser dashboard's storage, so a stored array can
be read back without any key mapping.
"""

from datetime import date
from typing import Any, Dict, Optional
from enum import Enum

from pydantic import BaseModel, Field
from pydantic.alias_generators import to_camel


KNOWN_WAREHOUSES = ("Rabale", "Taloja", "Ambernath-M2")


class RecordStatus(str, Enum):
    """Record status enumeration. Only the first two are ever persisted."""
    DISPATCHED = "Dispatched"
    COMMISSIONED = "Commissioned"
    OVERDUE = "Overdue"


class TransformerRecord(BaseModel):
    """
    A single transformer dispatch record.

    warranty_date_dispatch, warranty_date_comm and status are derived by the
    record store and never edited directly.
    """
    id: str = Field(..., min_length=1)

    # Identification
    serial_number: str
    customer_name: str
    project: str = "N/A"

    # Technical
    rating_kva: float = Field(default=0, alias="ratingKVA")
    voltage_ratio: str = "N/A"

    # Logistics
    dispatch_date: str = ""
    source_warehouse: str = "Rabale"
    shipping_address: str = ""

    # Commissioning
    commissioning_due_date: str = ""
    commissioning_done_date: Optional[str] = None

    # Warranty
    warranty_months_comm: int = 12
    warranty_months_dispatch: int = 12
    warranty_date_dispatch: str = ""
    warranty_date_comm: str = ""

    # Financial
    pbg_amount: float = 0
    pbg_due_date: str = ""

    status: RecordStatus = RecordStatus.DISPATCHED

    # Classification
    sales_person: str = "N/A"
    territory: str = ""
    state: str = ""
    narration: str = ""

    class Config:
        alias_generator = to_camel
        populate_by_name = True

    @property
    def is_commissioned(self) -> bool:
        return self.status == RecordStatus.COMMISSIONED

    def to_storage(self) -> Dict[str, Any]:
        """Serialize with camelCase keys for the key-value store."""
        return self.model_dump(by_alias=True, mode="json")

    def insight_projection(self) -> Dict[str, Any]:
        """Reduced view sent to the insights collaborator."""
        return {
            "customer": self.customer_name,
            "project": self.project,
            "rating": self.rating_kva,
            "status": self.status.value,
            "pbgAmount": self.pbg_amount,
            "commissioningDue": self.commissioning_due_date,
            "warrantyEnd": self.warranty_date_dispatch,
        }


class TransformerDraft(BaseModel):
    """
    Form payload for creating or updating a record.

    Every field is optional and numbers may arrive as strings; the record
    store validates, defaults and coerces. Unknown keys (including derived
    fields posted back by an edit form) are ignored.
    """
    serial_number: Optional[str] = None
    customer_name: Optional[str] = None
    project: Optional[str] = None
    dispatch_date: Optional[str] = Field(default_factory=lambda: date.today().isoformat())
    rating_kva: Any = Field(default=None, alias="ratingKVA")
    voltage_ratio: Optional[str] = None
    commissioning_due_date: Optional[str] = None
    commissioning_done_date: Optional[str] = None
    source_warehouse: Optional[str] = None
    shipping_address: Optional[str] = None
    warranty_months_comm: Any = 12
    warranty_months_dispatch: Any = 18
    pbg_due_date: Optional[str] = None
    pbg_amount: Any = 0
    sales_person: Optional[str] = None
    territory: Optional[str] = None
    state: Optional[str] = None
    narration: Optional[str] = None

    class Config:
        alias_generator = to_camel
        populate_by_name = True
        extra = "ignore"

    def missing_fields(self) -> list:
        """JSON names of required fields that are empty."""
        missing = []
        if not (self.serial_number or "").strip():
            missing.append("serialNumber")
        if not (self.customer_name or "").strip():
            missing.append("customerName")
        return missing
