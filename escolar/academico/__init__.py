"""
Módulo Académico (Blueprint)

Directorio de alumnos, captura de calificaciones por periodo y promedios.
"""

from flask import Blueprint

academico_bp = Blueprint(
    'academico_bp',
    __name__,
    url_prefix='/academico'
)

from . import routes
