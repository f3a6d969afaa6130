"""
Schémas Pydantic pour la configuration du client (tenant).
Endpoints : GET / POST / PUT /client, pas de suppression côté backend.
"""

from typing import Any, Dict, Optional

from pydantic import BaseModel, EmailStr, Field


class ClientCreate(BaseModel):
    name: str
    cnpj: str
    slug: str
    logo_url: Optional[str] = None
    contact_email: EmailStr
    contact_phone: Optional[str] = None
    certificate_template_html: str = ""
    default_min_presence_pct: int = Field(default=0, ge=0, le=100)
    lgpd_policy_text: str = ""
    config_json: Dict[str, Any] = {}


class ClientUpdate(BaseModel):
    name: Optional[str] = None
    cnpj: Optional[str] = None
    slug: Optional[str] = None
    logo_url: Optional[str] = None
    contact_email: Optional[EmailStr] = None
    contact_phone: Optional[str] = None
    certificate_template_html: Optional[str] = None
    default_min_presence_pct: Optional[int] = Field(default=None, ge=0, le=100)
    lgpd_policy_text: Optional[str] = None
    config_json: Optional[Dict[str, Any]] = None


class ClientResponse(BaseModel):
    id: int
    name: str
    cnpj: str
    slug: str
    logo_url: Optional[str] = None
    contact_email: str
    contact_phone: Optional[str] = None
    certificate_template_html: str = ""
    default_min_presence_pct: int = 0
    lgpd_policy_text: str = ""
    config_json: Dict[str, Any] = {}
