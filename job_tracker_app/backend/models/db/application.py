from sqlalchemy import Column, ForeignKey, Integer, String, Text, UniqueConstraint
from sqlalchemy.orm import relationship, validates

from .database import Base, UTCDateTime
from .user import utcnow
from ...utils.normalize import normalize_key


class Application(Base):
    __tablename__ = "applications"
    __table_args__ = (
        # Authoritative duplicate backstop: one (company, title) pair per user
        UniqueConstraint("user_id", "company_key", "title_key", name="uq_application_user_company_title"),
    )

    id = Column(Integer, primary_key=True, index=True)
    user_id = Column(Integer, ForeignKey("users.id", ondelete="CASCADE"), index=True, nullable=False)

    company_name = Column(String(200), index=True, nullable=False)
    job_title = Column(String(200), index=True, nullable=False)
    # Trimmed, case-folded copies kept in sync by the validators below.
    # casefold() maps one character to at most three, hence 3x the display width.
    company_key = Column(String(600), nullable=False)
    title_key = Column(String(600), nullable=False)

    location = Column(String(200), nullable=False, default="")
    url = Column(String(2000), nullable=False, default="")
    date_applied = Column(UTCDateTime, index=True, nullable=False, default=utcnow)
    source = Column(String(32), nullable=False, default="Manual")
    status = Column(String(32), index=True, nullable=False, default="Applied")
    notes = Column(Text, nullable=False, default="")

    created_at = Column(UTCDateTime, default=utcnow, nullable=False)
    updated_at = Column(UTCDateTime, default=utcnow, onupdate=utcnow, nullable=False)

    user = relationship("User", back_populates="applications")

    @validates("company_name")
    def _sync_company_key(self, key, value):
        self.company_key = normalize_key(value)
        return value

    @validates("job_title")
    def _sync_title_key(self, key, value):
        self.title_key = normalize_key(value)
        return value
