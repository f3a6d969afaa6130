"""
Validation et masques des champs de formulaire (CPF, CNPJ, e-mail, téléphone).
"""

import re

from pydantic import EmailStr, TypeAdapter
from pydantic import ValidationError as PydanticValidationError

_EMAIL = TypeAdapter(EmailStr)
SLUG_REGEX = re.compile(r"^[a-z0-9]+(?:-[a-z0-9]+)*$")
NON_DIGIT = re.compile(r"\D")


def only_digits(value: str) -> str:
    return NON_DIGIT.sub("", value or "")


def _cpf_check_digit(digits: str, weight_start: int) -> int:
    total = sum(int(d) * (weight_start - i) for i, d in enumerate(digits))
    remainder = (total * 10) % 11
    return 0 if remainder == 10 else remainder


def is_valid_cpf(cpf: str) -> bool:
    """
    Vérifie un CPF (11 chiffres, masque accepté) par ses deux chiffres de contrôle.
    Les séquences répétées (000.000.000-00, 111...) sont rejetées.
    """
    digits = only_digits(cpf)
    if len(digits) != 11 or len(set(digits)) == 1:
        return False
    if _cpf_check_digit(digits[:9], 10) != int(digits[9]):
        return False
    return _cpf_check_digit(digits[:10], 11) == int(digits[10])


def _cnpj_check_digit(digits: str) -> int:
    weights = list(range(len(digits) - 7, 1, -1)) + list(range(9, 1, -1))
    total = sum(int(d) * w for d, w in zip(digits, weights))
    remainder = total % 11
    return 0 if remainder < 2 else 11 - remainder


def is_valid_cnpj(cnpj: str) -> bool:
    """Vérifie un CNPJ (14 chiffres, masque accepté) par ses deux chiffres de contrôle."""
    digits = only_digits(cnpj)
    if len(digits) != 14 or len(set(digits)) == 1:
        return False
    if _cnpj_check_digit(digits[:12]) != int(digits[12]):
        return False
    return _cnpj_check_digit(digits[:13]) == int(digits[13])


def is_valid_email(email: str) -> bool:
    """Mêmes règles que les schémas (EmailStr, via email-validator)."""
    try:
        _EMAIL.validate_python(email or "")
    except PydanticValidationError:
        return False
    return True


def is_valid_phone(phone: str) -> bool:
    """Téléphone brésilien : 10 (fixe) ou 11 (mobile) chiffres, DDD compris."""
    return 10 <= len(only_digits(phone)) <= 11


def is_valid_slug(slug: str) -> bool:
    return bool(SLUG_REGEX.match(slug or ""))


def mask_cpf(cpf: str) -> str:
    """Formate progressivement : 123 → 123.456 → 123.456.789 → 123.456.789-09."""
    d = only_digits(cpf)[:11]
    if len(d) <= 3:
        return d
    if len(d) <= 6:
        return f"{d[:3]}.{d[3:]}"
    if len(d) <= 9:
        return f"{d[:3]}.{d[3:6]}.{d[6:]}"
    return f"{d[:3]}.{d[3:6]}.{d[6:9]}-{d[9:]}"


def mask_cnpj(cnpj: str) -> str:
    d = only_digits(cnpj)[:14]
    if len(d) <= 2:
        return d
    if len(d) <= 5:
        return f"{d[:2]}.{d[2:]}"
    if len(d) <= 8:
        return f"{d[:2]}.{d[2:5]}.{d[5:]}"
    if len(d) <= 12:
        return f"{d[:2]}.{d[2:5]}.{d[5:8]}/{d[8:]}"
    return f"{d[:2]}.{d[2:5]}.{d[5:8]}/{d[8:12]}-{d[12:]}"


def mask_phone(phone: str) -> str:
    """(11) 9876 puis (11) 98765-4321."""
    d = only_digits(phone)
    if len(d) <= 7:
        return f"({d[:2]}) {d[2:]}"
    return f"({d[:2]}) {d[2:7]}-{d[7:11]}"
