from sqlalchemy import Column, Date, Integer, Numeric, String, Text

from .base import Base, CreatedAtMixin, UUIDMixin


class ContactMessage(Base, UUIDMixin, CreatedAtMixin):
    """Messages sent through the contact form."""

    __tablename__ = "contact_messages"

    name = Column(String(100), nullable=False)
    email = Column(String(255))
    message = Column(Text, nullable=False)

    def __repr__(self) -> str:
        return f"<ContactMessage(id={self.id})>"


class WriterApplication(Base, UUIDMixin, CreatedAtMixin):
    """Writer applications, with an optional writing sample."""

    __tablename__ = "writer_applications"

    name = Column(String(100), nullable=False)
    email = Column(String(255))
    phone = Column(String(20), nullable=False)
    education = Column(String(200), nullable=False)
    motivation = Column(Text, nullable=False)
    sample_link = Column(String(500))

    # Stored file name generated by the upload sink, never the client filename
    writing_sample = Column(String(255))

    def __repr__(self) -> str:
        return f"<WriterApplication(id={self.id})>"


class GenericRequest(Base, UUIDMixin, CreatedAtMixin):
    """Generic service requests (also submitted as orders)."""

    __tablename__ = "generic_requests"

    name = Column(String(100), nullable=False)
    phone = Column(String(20), nullable=False)
    email = Column(String(255))
    address = Column(String(255), nullable=False)
    topic = Column(String(120))
    message = Column(Text, nullable=False)

    # Optional order details
    pages = Column(Integer)
    budget = Column(Numeric(12, 2))
    deadline = Column(Date)

    attachment = Column(String(255))

    def __repr__(self) -> str:
        return f"<GenericRequest(id={self.id})>"
