"""
Token Models for Canvas Ledger
==============================

The ownership record minted when a canvas is claimed, and the metadata
document external renderers consume.
"""

from pydantic import BaseModel, ConfigDict, Field


class TokenMetadata(BaseModel):
    """
    Descriptor of a minted canvas.

    Serialized with camelCase keys in declaration order; this key set is the
    stable document format consumed outside the ledger.
    """
    model_config = ConfigDict(frozen=True, populate_by_name=True)

    width: int
    height: int
    start_tick: int = Field(alias="startTick")
    final_tick: int = Field(alias="finalTick")
    complete: bool
    artwork_ref: str = Field(alias="artworkRef")

    def to_json(self) -> str:
        """Compact, deterministic JSON document."""
        return self.model_dump_json(by_alias=True)


class OwnershipRecord(BaseModel):
    """Non-fungible record binding a claimed canvas to its holder."""
    model_config = ConfigDict(frozen=True)

    token_id: int = Field(ge=1)
    canvas_id: int = Field(ge=1)
    holder: str
    minted_at_tick: int = Field(ge=0)
    metadata: TokenMetadata

    def with_holder(self, holder: str) -> "OwnershipRecord":
        return self.model_copy(update={"holder": holder})
