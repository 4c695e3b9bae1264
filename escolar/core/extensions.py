"""
Módulo Central de Extensiones.
Evita importaciones circulares centralizando las instancias de las extensiones.
"""
from flask_limiter import Limiter
from flask_limiter.util import get_remote_address

# Limiter (Rate Limiting). El almacenamiento se toma de RATELIMIT_STORAGE_URI.
limiter = Limiter(
    key_func=get_remote_address,
    default_limits=["2000 per day", "300 per hour"]
)
