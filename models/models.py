from sqlalchemy.orm import declarative_base
from sqlalchemy import (
    Boolean, CheckConstraint, Column, DateTime, ForeignKey,
    Index, PrimaryKeyConstraint, String,
)
from models.domain import utcnow


Base = declarative_base()


class Team(Base):
    __tablename__ = 'teams'

    team_name = Column(String(100), primary_key=True)
    createdAt = Column(DateTime(timezone=True), nullable=False, default=utcnow)


class User(Base):
    __tablename__ = 'users'

    user_id = Column(String(50), primary_key=True)
    username = Column(String(100), nullable=False)
    team_name = Column(String(100), ForeignKey('teams.team_name'), nullable=False, index=True)
    isActive = Column(Boolean(), nullable=False, default=True)

    __table_args__ = (
        Index('ix_users_team_active', 'team_name', 'isActive'),
    )


class PullRequest(Base):
    __tablename__ = 'pullrequests'

    pull_request_id = Column(String(100), primary_key=True)
    name = Column(String(255), nullable=False)
    author_id = Column(String(50), ForeignKey('users.user_id'), nullable=False, index=True)
    status = Column(String(10), nullable=False, default='OPEN', index=True)
    createdAt = Column(DateTime(timezone=True), nullable=False, default=utcnow)
    mergedAt = Column(DateTime(timezone=True), nullable=True)

    __table_args__ = (
        CheckConstraint("status IN ('OPEN', 'MERGED')", name='ck_pullrequests_status'),
    )


class Reviewers(Base):
    __tablename__ = 'reviewers'

    pr_id = Column(String(100), ForeignKey('pullrequests.pull_request_id'), nullable=False, index=True)
    reviewer_id = Column(String(50), ForeignKey('users.user_id'), nullable=False, index=True)
    assignedAt = Column(DateTime(timezone=True), nullable=False, default=utcnow)

    __table_args__ = (
        PrimaryKeyConstraint('pr_id', 'reviewer_id'),
    )
