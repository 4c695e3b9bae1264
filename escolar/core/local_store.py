"""
Almacén Local Durable (clave-valor síncrono)

Cada clave se guarda como un archivo de texto dentro del directorio de datos
de la instancia. La escritura es atómica (archivo temporal + os.replace), de
modo que un lector nunca observa un documento a medio escribir.
"""

import os
import re
import tempfile
from pathlib import Path
from typing import Optional

from .logger import get_logger

logger = get_logger(__name__)

_CLAVE_VALIDA = re.compile(r'^[A-Za-z0-9_\-\.]+$')


class AlmacenLocal:
    """Almacén clave-valor respaldado por archivos."""

    def __init__(self, directorio):
        self.directorio = Path(directorio)
        self.directorio.mkdir(parents=True, exist_ok=True)

    def _ruta(self, clave: str) -> Path:
        if not _CLAVE_VALIDA.match(clave):
            raise ValueError(f"Clave de almacenamiento inválida: {clave!r}")
        return self.directorio / f"{clave}.json"

    def leer(self, clave: str) -> Optional[str]:
        """Devuelve el texto guardado bajo 'clave' o None si no existe."""
        ruta = self._ruta(clave)
        try:
            return ruta.read_text(encoding='utf-8')
        except FileNotFoundError:
            return None

    def escribir(self, clave: str, valor: str) -> None:
        ruta = self._ruta(clave)
        fd, ruta_temporal = tempfile.mkstemp(dir=self.directorio, prefix=f".{clave}.", suffix='.tmp')
        try:
            with os.fdopen(fd, 'w', encoding='utf-8') as archivo:
                archivo.write(valor)
            os.replace(ruta_temporal, ruta)
        except OSError:
            logger.error(f"Fallo al escribir la clave '{clave}' en {self.directorio}", exc_info=True)
            if os.path.exists(ruta_temporal):
                os.remove(ruta_temporal)
            raise

    def eliminar(self, clave: str) -> None:
        """Elimina la clave; no falla si ya no existe."""
        try:
            self._ruta(clave).unlink()
        except FileNotFoundError:
            pass
