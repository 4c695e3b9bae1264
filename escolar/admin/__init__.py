"""
Módulo Admin (Blueprint)

Gestiona las rutas de administración: personal, periodos de captura,
fechas límite y conexión con la base de datos en la nube.
"""

from flask import Blueprint

admin_bp = Blueprint(
    'admin_bp',
    __name__,
    url_prefix='/admin'  # Todas las rutas comienzan con /admin
)

from . import routes
