"""Table API schemas."""

from pydantic import Field

from qrorder.schemas.common import CamelModel


class TableCreate(CamelModel):
    """Create one table (optionally with an explicit number) or ``bulk_count`` tables."""

    table_number: str | int | None = None
    bulk_count: int | None = Field(default=None, ge=1)
    capacity: int = Field(default=0, ge=0)
    qr_code_url: str | None = None


class TableUpdate(CamelModel):
    status: str | None = None
    capacity: int | None = Field(default=None, ge=0)
    qr_code_url: str | None = None


class TableDTO(CamelModel):
    id: str
    table_number: str
    status: str
    capacity: int
    qr_code_url: str
