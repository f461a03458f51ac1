"""SQLAlchemy model for tenants (chatbot clients)."""

from sqlalchemy import Float, Integer, String, Text
from sqlalchemy.orm import Mapped, mapped_column

from tenantbot_engine.common.models import Base, TimestampMixin, generate_uuid


class TenantModel(Base, TimestampMixin):
    __tablename__ = "tenants"

    client_id: Mapped[str] = mapped_column(String(36), primary_key=True, default=generate_uuid)
    name: Mapped[str] = mapped_column(String(255), nullable=False, default="New Client")
    knowledge_text: Mapped[str] = mapped_column(Text, nullable=False, default="")
    fallback_text: Mapped[str] = mapped_column(
        Text, nullable=False, default="Sorry, I don't understand."
    )
    storage_limit_mb: Mapped[float] = mapped_column(Float, nullable=False, default=1024.0)
    retention_days: Mapped[int] = mapped_column(Integer, nullable=False, default=30)
    bot_name: Mapped[str] = mapped_column(String(255), nullable=False, default="Chatbot")
    avatar: Mapped[str] = mapped_column(Text, nullable=False, default="")
    domain: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    widget_code: Mapped[str] = mapped_column(Text, nullable=False, default="")
    api_key: Mapped[str] = mapped_column(String(255), nullable=False, default="")
    client_token_hash: Mapped[str] = mapped_column(String(64), nullable=False, default="")
    tokens: Mapped[int] = mapped_column(Integer, nullable=False, default=0)
