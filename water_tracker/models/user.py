"""Pydantic models for user accounts stored in MongoDB."""

from datetime import datetime

from pydantic import BaseModel, ConfigDict, Field, field_validator

from water_tracker.models.usage import UsageEntry, UsageLedger

ADMIN_USERNAME = "admin"


class User(BaseModel):
    """User document with credentials and water usage ledger."""

    model_config = ConfigDict(populate_by_name=True, extra="ignore")

    id: str | None = Field(default=None, alias="_id", description="Store-assigned ID")
    username: str = Field(..., description="Unique login name")
    password_hash: str = Field(..., alias="passwordHash", description="bcrypt hash")
    api_key: str | None = Field(
        default=None, alias="apiKey", description="Usage ingestion credential"
    )
    is_admin: bool = Field(default=False, alias="isAdmin")
    usage_entries: list[UsageEntry] = Field(
        default_factory=list, alias="usageEntries"
    )
    usage_history: list[UsageEntry] = Field(
        default_factory=list, alias="usageHistory"
    )
    created_at: datetime = Field(
        default_factory=datetime.now,
        alias="createdAt",
        description="When the account was registered",
    )

    @field_validator("id", mode="before")
    @classmethod
    def _stringify_object_id(cls, value):
        return None if value is None else str(value)

    @property
    def ledger(self) -> UsageLedger:
        """A working copy of this user's usage ledger."""
        return UsageLedger(
            entries=[e.model_copy() for e in self.usage_entries],
            history=[e.model_copy() for e in self.usage_history],
        )

    def to_document(self) -> dict:
        """Serialize for insertion, leaving ``_id`` to the store."""
        doc = self.model_dump(by_alias=True, exclude={"id"})
        doc["usageEntries"] = [e.model_dump(mode="json") for e in self.usage_entries]
        doc["usageHistory"] = [e.model_dump(mode="json") for e in self.usage_history]
        if doc["apiKey"] is None:
            # Keeps the sparse unique index from seeing admin accounts
            del doc["apiKey"]
        return doc


class UserUsageSummary(BaseModel):
    """One row of the admin dashboard."""

    username: str
    api_key: str
    latest_usage: int
