"""
Modèle SQLAlchemy pour les certificats émis.

Aucune contrainte d'unicité sur enrollment_id : un certificat révoqué peut être
suivi d'une nouvelle émission. L'unicité « un seul certificat émis par
inscription » est vérifiée à la génération (lecture puis écriture) ; la garantie
forte relève du backend.
"""

import uuid
from sqlalchemy import Column, DateTime, String, func

from eventhub.database import Base


class Certificate(Base):
    __tablename__ = "certificates"

    id = Column(String(36), primary_key=True, default=lambda: uuid.uuid4().hex)
    enrollment_id = Column(String(64), nullable=False, index=True)
    event_id = Column(String(64), nullable=True, index=True)

    issued_at = Column(DateTime, nullable=False)
    verification_code = Column(String(16), unique=True, nullable=False)
    status = Column(String(20), nullable=False, default="issued")  # issued, revoked
    pdf_url = Column(String(255), nullable=True)
    revoked_at = Column(DateTime, nullable=True)

    created_at = Column(DateTime, server_default=func.now())
