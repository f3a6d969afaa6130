"""
Rendu des QR codes d'inscription.

Le jeton (enrollment.qr_code) est opaque : il est simplement encodé dans l'image,
présentée ensuite au check-in.
"""

import io

import qrcode

from eventhub.exceptions import ValidationError
from eventhub.schemas.enrollment import Enrollment


def generate_qr_image(token: str) -> bytes:
    """Génère une image PNG du QR code encodant le jeton donné."""
    qr = qrcode.QRCode(version=1, box_size=10, border=4)
    qr.add_data(token)
    qr.make(fit=True)
    img = qr.make_image(fill_color="black", back_color="white")
    buf = io.BytesIO()
    img.save(buf, format="PNG")
    return buf.getvalue()


def enrollment_qr_image(enrollment: Enrollment) -> bytes:
    """PNG du QR code d'une inscription ; refusé si l'inscription n'a pas de jeton."""
    if not enrollment.qr_code:
        raise ValidationError({"qr_code": f"L'inscription {enrollment.id} n'a pas de QR code."})
    return generate_qr_image(enrollment.qr_code)
