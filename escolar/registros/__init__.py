"""
Módulo de Subdirección (Blueprint)

Citatorios, bitácora de incidencias y minutas de atención a padres.
"""

from flask import Blueprint

registros_bp = Blueprint(
    'registros_bp',
    __name__,
    url_prefix='/registros'
)

from . import routes
