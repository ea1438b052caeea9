"""
Pydantic schemas for account deletion.
"""

from typing import Optional

from pydantic import BaseModel, Field


class DeleteAccountRequest(BaseModel):
    """userId is validated by the handler so a missing id answers 400."""

    user_id: Optional[str] = Field(default=None, alias="userId")

    model_config = {"populate_by_name": True}


class DeleteAccountResponse(BaseModel):
    success: bool = True
    message: str
