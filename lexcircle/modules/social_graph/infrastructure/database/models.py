# 📄 File: lexcircle/modules/social_graph/infrastructure/database/models.py
# 🧭 Purpose (Layman Explanation):
# This file defines how members, their follow/follower/block lists and their notifications
# are stored in the database tables.
#
# 🧪 Purpose (Technical Summary):
# SQLAlchemy ORM models for the social graph. Relationship sets are stored one row per
# (owner, kind, member) with a unique constraint giving set semantics; member ids carry no
# foreign key so the two sides of a relationship are stored independently.
#
# 🔗 Dependencies:
# - SQLAlchemy ORM
# - lexcircle.shared.infrastructure.database.connection (declarative Base)
#
# 🔄 Connected Modules / Calls From:
# - user_record_store_impl.py (graph reads and writes)
# - notifications/dispatcher.py (notification rows)
# - migrations/versions/001_initial_tables.py (schema)

"""
SQLAlchemy Models for the Social Graph

Models:
- UserModel: member account fields, visibility flags and cached counters
- UserRelationModel: one element of a following / followers / blocked set
- NotificationModel: in-app notifications produced by graph events
"""

from uuid import uuid4

from sqlalchemy import (
    Boolean,
    Column,
    DateTime,
    Enum as SQLEnum,
    ForeignKey,
    Index,
    Integer,
    String,
    Text,
    UniqueConstraint,
    Uuid,
)
from sqlalchemy.sql import func

from lexcircle.shared.infrastructure.database.connection import Base
from lexcircle.modules.social_graph.domain.models.user_record import RelationKind, UserRole


def _new_id() -> str:
    return str(uuid4())


# =============================================================================
# USER MODEL
# =============================================================================

class UserModel(Base):
    """
    SQLAlchemy model for a community member as seen by the social graph.

    Counters are denormalized sizes of the member's following / followers
    rows and are maintained by the store, never by database triggers.
    """
    __tablename__ = "users"

    user_id = Column(
        Uuid(as_uuid=False),
        primary_key=True,
        default=_new_id,
        nullable=False,
        comment="Unique identifier for each user"
    )
    username = Column(
        String(50),
        unique=True,
        nullable=False,
        index=True,
        comment="Unique public handle"
    )

    # Public profile
    first_name = Column(String(100), nullable=True)
    last_name = Column(String(100), nullable=True)
    profile_picture = Column(String(500), nullable=True, comment="Avatar URL or storage key")
    bio = Column(Text, nullable=True)
    organization = Column(String(200), nullable=True, comment="Law firm, court or school")

    role = Column(
        SQLEnum(UserRole, name="user_role", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        default=UserRole.USER,
        comment="Platform role"
    )
    is_deleted = Column(Boolean, nullable=False, default=False, comment="Soft deletion flag")
    hide_from_suggestions = Column(
        Boolean,
        nullable=False,
        default=False,
        comment="Suppressed from discovery and follow targeting"
    )

    # Cached counters
    following_count = Column(Integer, nullable=False, default=0, comment="Cached size of following set")
    followers_count = Column(Integer, nullable=False, default=0, comment="Cached size of followers set")

    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())
    updated_at = Column(
        DateTime(timezone=True),
        nullable=False,
        server_default=func.now(),
        onupdate=func.now()
    )

    def __repr__(self) -> str:
        return f"<UserModel(user_id={self.user_id}, username={self.username})>"


# =============================================================================
# RELATION MODEL
# =============================================================================

class UserRelationModel(Base):
    """
    One element of a user's following, followers or blocked set.

    The unique constraint on (owner_id, kind, member_id) makes inserts
    conditional, so a repeated add never duplicates an element.
    """
    __tablename__ = "user_relations"
    __table_args__ = (
        UniqueConstraint("owner_id", "kind", "member_id", name="uq_user_relations_owner_kind_member"),
        Index("ix_user_relations_member", "member_id", "kind"),
    )

    relation_id = Column(Integer, primary_key=True, autoincrement=True)
    owner_id = Column(
        Uuid(as_uuid=False),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
        comment="User whose set this row belongs to"
    )
    kind = Column(
        SQLEnum(RelationKind, name="relation_kind", values_callable=lambda e: [m.value for m in e]),
        nullable=False,
        comment="following / followers / blocked"
    )
    member_id = Column(
        Uuid(as_uuid=False),
        nullable=False,
        comment="Referenced user; may dangle after account deletion"
    )
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<UserRelationModel(owner_id={self.owner_id}, kind={self.kind}, member_id={self.member_id})>"


# =============================================================================
# NOTIFICATION MODEL
# =============================================================================

class NotificationModel(Base):
    """In-app notification addressed to a member."""
    __tablename__ = "notifications"

    notification_id = Column(Uuid(as_uuid=False), primary_key=True, default=_new_id)
    recipient_id = Column(
        Uuid(as_uuid=False),
        ForeignKey("users.user_id", ondelete="CASCADE"),
        nullable=False,
        index=True
    )
    sender_id = Column(Uuid(as_uuid=False), nullable=True)
    type = Column(String(50), nullable=False, comment="Notification type, e.g. follow")
    message = Column(Text, nullable=False)
    is_read = Column(Boolean, nullable=False, default=False)
    created_at = Column(DateTime(timezone=True), nullable=False, server_default=func.now())

    def __repr__(self) -> str:
        return f"<NotificationModel(recipient_id={self.recipient_id}, type={self.type})>"


__all__ = ["UserModel", "UserRelationModel", "NotificationModel"]
