"""
Módulo de Logging Centralizado.

Todos los módulos del sistema registran eventos a través de este helper
(cierre automático de periodos, fallos de sincronización con Firestore, etc.),
siempre hacia stdout para que el contenedor o el servicio los recoja.
"""

import logging
import sys


def get_logger(name: str) -> logging.Logger:
    """
    Configura y devuelve un logger con formato estandarizado.

    Args:
        name (str): Nombre del módulo que registra (normalmente __name__).

    Returns:
        logging.Logger: Instancia configurada del logger.
    """
    logger = logging.getLogger(name)

    # Evita agregar varios handlers si el logger ya fue configurado
    if not logger.handlers:
        logger.setLevel(logging.INFO)

        formatter = logging.Formatter(
            '[%(asctime)s] %(levelname)s in %(module)s: %(message)s'
        )

        handler = logging.StreamHandler(sys.stdout)
        handler.setFormatter(formatter)

        logger.addHandler(handler)

    return logger
