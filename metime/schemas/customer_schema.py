"""Customer details submitted with a booking."""

from typing import Optional

from pydantic import BaseModel


class Customer(BaseModel):
    """Contact details as typed by the customer or the studio owner."""
    name: str
    phone: str
    email: Optional[str] = None
    notes: Optional[str] = None
