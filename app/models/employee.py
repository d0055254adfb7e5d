"""
Employee Model
Schema for employee records created and edited by approved HR requests
"""
from typing import Optional
from pydantic import BaseModel, ConfigDict, EmailStr, field_validator


# Natural key of the `employees` collection
EMPLOYEE_KEY_FIELD = "cedula"


class NewEmployee(BaseModel):
    """Proposed data of an add-employee request (credential excluded)"""
    model_config = ConfigDict(extra="allow")

    cedula: str
    nombre: str
    email: Optional[EmailStr] = None
    posicion: Optional[str] = None
    departamento: Optional[str] = None
    fecha_inicio: Optional[str] = None
    salario: Optional[float] = None
    status: str = "Activo"

    @field_validator("cedula", "nombre")
    @classmethod
    def validate_required(cls, v: str) -> str:
        v = (v or "").strip()
        if not v:
            raise ValueError("must not be empty")
        return v

    def login_id(self, domain: str) -> str:
        """Login used for the employee's account"""
        if self.email:
            return str(self.email).lower()
        return f"{self.nombre.lower().replace(' ', '')}@{domain}"
