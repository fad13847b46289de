from datetime import datetime

import sqlalchemy as sa
from sqlalchemy import JSON, String
from sqlalchemy.orm import Mapped, declarative_base, mapped_column

from rsvp_portal.config.table_names import TableNames

BaseModel = declarative_base()


class PersistedState(BaseModel):
    __tablename__ = TableNames.PERSISTED_STATE.value

    name: Mapped[str] = mapped_column(String(100), primary_key=True)
    payload: Mapped[dict] = mapped_column(JSON, nullable=False)
    updated_at: Mapped[datetime] = mapped_column(
        sa.DateTime(timezone=True),
        server_default=sa.func.current_timestamp(),
        onupdate=sa.func.current_timestamp(),
        nullable=False,
    )

    def __repr__(self) -> str:
        return f"<PersistedState {self.name}>"
