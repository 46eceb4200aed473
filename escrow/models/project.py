"""
Model Escrow API: Project, Activity and User tables.
"""

from sqlalchemy import Column, ForeignKey, Integer, Numeric, String, Text

from escrow.database import Base, UTCDateTime


class ProjectRow(Base):
    """One escrow project between a buyer and a seller."""
    __tablename__ = "projects"

    id = Column(String(36), primary_key=True)

    title = Column(Text, nullable=False)
    description = Column(Text, nullable=False)
    amount = Column(Numeric(10, 2), nullable=False)
    currency = Column(String(3), nullable=False, default="USD")

    # Parties
    buyer_email = Column(String(320), nullable=False, index=True)
    seller_email = Column(String(320), nullable=True, index=True)
    created_by = Column(String(10), nullable=False)       # "buyer" or "seller"
    deadline = Column(UTCDateTime, nullable=True)

    # Deliverable file (null until upload)
    file_name = Column(Text, nullable=True)
    file_size = Column(Integer, nullable=True)
    file_type = Column(String(200), nullable=True)
    file_path = Column(Text, nullable=True)
    uploaded_at = Column(UTCDateTime, nullable=True)

    # Workflow
    status = Column(String(30), nullable=False, default="created")
    payment_status = Column(String(20), nullable=False, default="pending")   # pending, held, released
    buyer_approved = Column(String(20), nullable=False, default="false")     # "false", "true", "revision_requested"
    seller_approved = Column(String(10), nullable=False, default="false")    # "false", "true"

    created_at = Column(UTCDateTime, nullable=False)
    updated_at = Column(UTCDateTime, nullable=False)

    def __repr__(self):
        return f"<Project {self.id} {self.status}>"


class ActivityRow(Base):
    """Immutable audit trail entry for a project."""
    __tablename__ = "activities"

    id = Column(String(36), primary_key=True)
    project_id = Column(String(36), ForeignKey("projects.id"), nullable=False, index=True)
    description = Column(Text, nullable=False)
    type = Column(String(20), nullable=False)      # created, payment, upload, review, approval, completion
    created_at = Column(UTCDateTime, nullable=False, index=True)

    def __repr__(self):
        return f"<Activity {self.project_id} {self.type}>"


class UserRow(Base):
    __tablename__ = "users"

    id = Column(String(36), primary_key=True)
    username = Column(String(100), nullable=False, unique=True)
    password = Column(Text, nullable=False)
