"""
Excepciones de dominio del sistema escolar.

Los blueprints las traducen a respuestas JSON (400/403); las capas internas
solo las lanzan.
"""


class ErrorEscolar(Exception):
    """Base de los errores de dominio."""


class ConfiguracionInvalida(ErrorEscolar, ValueError):
    """La configuración de conexión remota no se pudo interpretar."""


class DatosInvalidos(ErrorEscolar, ValueError):
    """Los datos enviados no respetan la estructura esperada."""


class PeriodoCerrado(ErrorEscolar):
    """Se intentó capturar calificaciones en un periodo no habilitado."""

    def __init__(self, periodo: str):
        super().__init__(f"El periodo '{periodo}' está cerrado para captura.")
        self.periodo = periodo


class AccesoDenegado(ErrorEscolar):
    """El usuario no tiene permiso sobre el recurso solicitado."""
