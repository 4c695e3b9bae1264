"""
Controlador del Ciclo de Vida de Periodos

Mantiene 'allowedPeriods' consistente con 'periodDeadlines': cuando la hora
civil de la Ciudad de México alcanza la fecha límite capturada por el
director, el periodo se cierra para captura. Cerrar un periodo no borra
calificaciones; solo deja de aceptar nuevas.

Las fechas límite no traen zona horaria: se comparan como hora de pared de
la zona configurada contra la hora de pared actual en esa misma zona.
"""

import threading
from datetime import datetime
from typing import Callable, Iterable, List, Optional
from zoneinfo import ZoneInfo

from .constants import ZONA_HORARIA, INTERVALO_REVISION_PERIODOS
from .logger import get_logger

logger = get_logger(__name__)


def interpretar_fecha_limite(valor) -> Optional[datetime]:
    """
    Convierte la fecha límite capturada ("YYYY-MM-DDTHH:MM") en datetime naive.

    Returns:
        None si el valor está vacío o no se puede interpretar; ese periodo
        se trata como "sin fecha límite".
    """
    if not isinstance(valor, str) or not valor.strip():
        return None

    try:
        fecha = datetime.fromisoformat(valor.strip())
    except ValueError:
        logger.warning(f"Fecha límite ilegible ignorada: {valor!r}")
        return None

    # Se conserva la hora de pared tal cual, sin convertir entre zonas
    return fecha.replace(tzinfo=None)


def hora_actual(zona: str = ZONA_HORARIA) -> datetime:
    """Hora de pared actual en la zona indicada, como datetime naive."""
    return datetime.now(ZoneInfo(zona)).replace(tzinfo=None)


def periodos_vencidos(abiertos: Iterable[str], fechas_limite: dict, ahora: datetime) -> List[str]:
    """
    Periodos abiertos cuya fecha límite ya pasó (límite inclusivo: ahora >= límite).
    """
    abiertos = list(abiertos or [])
    vencidos = []
    for clave, valor in (fechas_limite or {}).items():
        if clave not in abiertos or not valor:
            continue
        limite = interpretar_fecha_limite(valor)
        if limite is None:
            continue
        if ahora >= limite:
            vencidos.append(clave)
    return vencidos


def cerrar_periodos_vencidos(datos: dict, ahora: datetime) -> Optional[dict]:
    """
    Calcula el patch que cierra, en un solo cambio, todos los periodos vencidos.

    Returns:
        {'allowedPeriods': [...]} o None si ningún periodo venció.
    """
    abiertos = list(datos.get('allowedPeriods') or [])
    vencidos = periodos_vencidos(abiertos, datos.get('periodDeadlines'), ahora)
    if not vencidos:
        return None

    logger.info(f"[Auto-Cierre] Cerrando periodos {vencidos}. Hora CDMX: {ahora.isoformat(sep=' ')}")
    return {'allowedPeriods': [p for p in abiertos if p not in vencidos]}


class ControladorPeriodos:
    """
    Tarea periódica que cierra los periodos vencidos.

    Corre en su propio hilo, independiente de cualquier vista o petición, y
    se detiene con un evento de cancelación.
    """

    def __init__(self, estado, zona: str = ZONA_HORARIA,
                 intervalo: float = INTERVALO_REVISION_PERIODOS,
                 reloj: Optional[Callable[[], datetime]] = None):
        self.estado = estado
        self.zona = zona
        self.intervalo = intervalo
        self._reloj = reloj or (lambda: hora_actual(self.zona))
        self._cancelar = threading.Event()
        self._hilo: Optional[threading.Thread] = None

    def revisar(self) -> List[str]:
        """
        Un ciclo de revisión. Confirma a lo sumo un cambio en el estado.

        Returns:
            list: Claves de los periodos cerrados en este ciclo.
        """
        ahora = self._reloj()
        cerrados: List[str] = []

        def _transformar(datos: dict) -> Optional[dict]:
            cambios = cerrar_periodos_vencidos(datos, ahora)
            if cambios:
                cerrados.extend(p for p in datos.get('allowedPeriods') or []
                                if p not in cambios['allowedPeriods'])
            return cambios

        self.estado.modificar(_transformar)
        return cerrados

    def _ejecutar(self) -> None:
        while not self._cancelar.wait(self.intervalo):
            try:
                self.revisar()
            except Exception as e:
                logger.error(f"Error en la revisión de fechas límite: {e}", exc_info=True)

    @property
    def activo(self) -> bool:
        return self._hilo is not None and self._hilo.is_alive()

    def iniciar(self) -> None:
        if self.activo:
            return
        self._cancelar.clear()
        self._hilo = threading.Thread(target=self._ejecutar, name='controlador-periodos', daemon=True)
        self._hilo.start()
        logger.info(f"Revisión de fechas límite activa cada {self.intervalo}s ({self.zona}).")

    def detener(self, timeout: Optional[float] = None) -> None:
        self._cancelar.set()
        if self._hilo is not None:
            self._hilo.join(timeout)
            self._hilo = None
