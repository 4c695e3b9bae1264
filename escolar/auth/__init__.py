"""
Módulo de Autenticación (Blueprint)

Define el Blueprint de Flask para las rutas de sesión
(Login, Logout, Sesión actual).
"""

from flask import Blueprint

auth_bp = Blueprint(
    'auth_bp',
    __name__,
    url_prefix='/auth'
)

# Importa las rutas al final para evitar dependencia circular
from . import routes
