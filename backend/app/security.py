"""
Identité de l'appelant pour les endpoints de présence.

Le login et l'émission des jetons sont gérés en amont : la passerelle
authentifie la requête et transmet l'identifiant dans l'en-tête X-User-Id.
"""

import uuid
from typing import Optional

from fastapi import Header, HTTPException


def get_current_user_id(x_user_id: Optional[str] = Header(default=None)) -> uuid.UUID:
    """Dépendance FastAPI : id de l'enseignant ou de l'étudiant authentifié."""
    if not x_user_id:
        raise HTTPException(status_code=401, detail="Authentification requise.")
    try:
        return uuid.UUID(x_user_id)
    except ValueError:
        raise HTTPException(status_code=401, detail="Identifiant utilisateur invalide.")
