"""
Schémas Pydantic pour les étudiants.
La validation de formulaire (CPF, e-mail, téléphone) est faite dans student_service
pour produire des erreurs par champ ; ces schémas décrivent le format d'échange.
"""

from typing import List, Optional

from pydantic import BaseModel, EmailStr


class StudentCreate(BaseModel):
    """Corps de POST /students (CPF et téléphone sans masque)."""
    name: str
    cpf: str
    email: Optional[EmailStr] = None
    ra: str = ""
    phone: Optional[str] = None


class StudentUpdate(BaseModel):
    """Corps de PUT /students/{id}. Les champs absents ne sont pas modifiés."""
    name: Optional[str] = None
    cpf: Optional[str] = None
    email: Optional[EmailStr] = None
    ra: Optional[str] = None
    phone: Optional[str] = None


class StudentResponse(BaseModel):
    id: int
    client_id: int
    name: str
    email: Optional[str] = None
    cpf: str
    ra: Optional[str] = None
    phone: Optional[str] = None

    model_config = {"from_attributes": True}


class StudentPage(BaseModel):
    """Variante paginée de GET /students."""
    data: List[StudentResponse]
    total: int
    page: int
    size: int
