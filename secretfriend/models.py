from datetime import datetime, timezone
from .extensions import db


class Draw(db.Model):
    __tablename__ = "draws"

    id = db.Column(db.String(36), primary_key=True)
    created_at = db.Column(db.DateTime(timezone=True), default=lambda: datetime.now(timezone.utc), nullable=False)

    entries = db.relationship(
        "DrawEntry",
        back_populates="draw",
        order_by="DrawEntry.position",
        cascade="all, delete-orphan",
    )


class DrawEntry(db.Model):
    """
    One giver within a draw. The assignee is stored encrypted.
    """
    __tablename__ = "draw_entries"

    id = db.Column(db.Integer, primary_key=True)
    draw_id = db.Column(db.String(36), db.ForeignKey("draws.id", ondelete="CASCADE"), nullable=False)
    position = db.Column(db.Integer, nullable=False)

    name = db.Column(db.String(128), nullable=False)
    contact = db.Column(db.String(64), nullable=False)
    token = db.Column(db.String(64), unique=True, nullable=False, index=True)

    # Fernet token string of the assignee's name
    assignee_ciphertext = db.Column(db.Text, nullable=False)

    sent_at = db.Column(db.DateTime(timezone=True), nullable=True)
    opened_at = db.Column(db.DateTime(timezone=True), nullable=True)

    draw = db.relationship("Draw", back_populates="entries")

    __table_args__ = (
        db.UniqueConstraint("draw_id", "position", name="uq_draw_entry_position"),
    )
