"""
Estado Escolar y Punto Único de Actualización

EstadoEscolar es el dueño del documento escolar en memoria. Toda mutación pasa
por commit(): reemplazo en memoria, escritura síncrona en el almacén local y,
si hay conexión, escritura asíncrona en Firestore. Los cambios parciales se
expresan como un "patch" de campos de primer nivel y se aplican con el
reductor aplicar_cambios().
"""

import copy
import json
import threading
from concurrent.futures import ThreadPoolExecutor
from typing import Callable, Optional

from flask import current_app

from . import database, sincronizacion
from .constants import CLAVE_DATOS_LOCALES, COLECCION_REMOTA, DOCUMENTO_REMOTO
from .defaults import generar_datos_iniciales, PASSWORD_INICIAL_POR_DEFECTO
from .logger import get_logger
from .reconciliacion import reconciliar, decodificar_documento

logger = get_logger(__name__)


def aplicar_cambios(actual: dict, cambios: dict) -> dict:
    """
    Reductor del agregado: (actual, cambios) -> nuevo.

    Cada clave de 'cambios' reemplaza por completo el campo correspondiente;
    no hay fusión a nivel de sub-campos.
    """
    nuevo = copy.deepcopy(actual)
    for clave, valor in cambios.items():
        nuevo[clave] = copy.deepcopy(valor)
    return nuevo


class EstadoEscolar:
    """
    Contenedor del documento escolar, compartido por todo el proceso.

    Uso típico:
        with EstadoEscolar(almacen) as estado:
            estado.aplicar({'allowedPeriods': ['inter_1', 'trim_1']})
    """

    def __init__(self, almacen, coleccion: str = COLECCION_REMOTA,
                 documento: str = DOCUMENTO_REMOTO,
                 password_inicial: str = PASSWORD_INICIAL_POR_DEFECTO,
                 ejecutor: Optional[ThreadPoolExecutor] = None,
                 sincronizar: bool = True):
        self._almacen = almacen
        self._coleccion = coleccion
        self._documento = documento
        self._password_inicial = password_inicial
        self._lock = threading.RLock()
        self._datos = self._defaults()
        self._db = None
        self._watch = None
        # False: se escribe en Firestore pero no se instala la suscripción
        self._sincronizar = sincronizar
        # Un solo hilo: las escrituras remotas salen en el orden de los commits
        self._ejecutor = ejecutor or ThreadPoolExecutor(max_workers=1, thread_name_prefix='firestore')

    def _defaults(self) -> dict:
        return generar_datos_iniciales(self._password_inicial)

    # === LECTURA ===

    @property
    def datos(self) -> dict:
        """Copia del documento vigente; modificarla no altera el estado."""
        with self._lock:
            return copy.deepcopy(self._datos)

    @property
    def conectado(self) -> bool:
        return self._db is not None

    # === CARGA ===

    def cargar(self) -> None:
        """
        Carga inicial: decide el modo (nube o local) y llena la memoria.

        El caché local se carga siempre primero; en modo nube la suscripción
        lo reemplaza en cuanto llega el primer snapshot.
        """
        with self._lock:
            self._datos = decodificar_documento(self._almacen.leer(CLAVE_DATOS_LOCALES), self._defaults())
            self._db = database.conectar_desde_almacen(self._almacen)

        if self._db is None:
            logger.info("Modo Local. Datos cargados del almacén local.")
        elif self._sincronizar:
            self.iniciar_sincronizacion()
        else:
            logger.info("Conectado a Firestore sin suscripción en tiempo real.")

    def recargar(self) -> None:
        """Recarga completa tras reconfigurar o desconectar la nube."""
        self.detener_sincronizacion()
        with self._lock:
            self._db = None
        self.cargar()

    # === PUNTO ÚNICO DE ACTUALIZACIÓN ===

    def commit(self, nuevos_datos: dict) -> None:
        """
        Reemplaza el documento completo y lo persiste.

        1. Reemplazo optimista en memoria.
        2. Escritura síncrona en el almacén local.
        3. Si hay conexión, escritura asíncrona en Firestore (errores solo se registran).
        """
        with self._lock:
            self._datos = copy.deepcopy(nuevos_datos)
            serializado = json.dumps(self._datos, ensure_ascii=False)
            self._almacen.escribir(CLAVE_DATOS_LOCALES, serializado)

            if self._db is not None:
                self._ejecutor.submit(self._guardar_remoto, self._db, json.loads(serializado))

    def aplicar(self, cambios: dict) -> dict:
        """Aplica un patch sobre el documento vigente y lo confirma."""
        with self._lock:
            nuevo = aplicar_cambios(self._datos, cambios)
            self.commit(nuevo)
            return copy.deepcopy(nuevo)

    def modificar(self, transformacion: Callable[[dict], Optional[dict]]) -> Optional[dict]:
        """
        Lectura-modificación-confirmación atómica.

        'transformacion' recibe una copia del documento vigente y devuelve un
        patch, o None si no hay nada que confirmar.
        """
        with self._lock:
            cambios = transformacion(copy.deepcopy(self._datos))
            if not cambios:
                return None
            return self.aplicar(cambios)

    def _guardar_remoto(self, db, datos: dict) -> None:
        try:
            sincronizacion.guardar_documento(db, datos, self._coleccion, self._documento)
        except Exception as e:
            logger.error(f"Fallo al guardar en la nube: {e}", exc_info=True)

    # === SUSCRIPCIÓN REMOTA ===

    def iniciar_sincronizacion(self) -> None:
        with self._lock:
            if self._db is None or self._watch is not None:
                return
            self._watch = sincronizacion.suscribir_documento(
                self._db, self._al_recibir_remoto, self._coleccion, self._documento
            )

    def detener_sincronizacion(self) -> None:
        with self._lock:
            watch, self._watch = self._watch, None
        if watch is not None:
            watch.unsubscribe()
            logger.info("Suscripción a Firestore cancelada.")

    def _al_recibir_remoto(self, entrante: dict) -> None:
        """Cambio remoto: reconcilia, reemplaza la memoria y refleja en local (sin reenviar)."""
        fusionado = reconciliar(entrante, self._defaults())
        with self._lock:
            self._datos = fusionado
            self._almacen.escribir(CLAVE_DATOS_LOCALES, json.dumps(fusionado, ensure_ascii=False))

    # === CONEXIÓN REMOTA ===

    def configurar_remoto(self, texto: str) -> None:
        """
        Valida y guarda la configuración de Firestore, luego recarga.

        Raises:
            ConfiguracionInvalida: con el mensaje a mostrar al usuario.
        """
        config = database.interpretar_config(texto)
        # Falla aquí (y no al recargar) si las credenciales no sirven
        database.crear_cliente(config)
        database.guardar_config(self._almacen, config)
        logger.info("Configuración remota guardada. Recargando...")
        self.recargar()

    def desconectar_remoto(self) -> None:
        database.eliminar_config(self._almacen)
        logger.info("Base de datos remota desconectada. Volviendo a modo local.")
        self.recargar()

    # === CICLO DE VIDA ===

    def cerrar(self) -> None:
        self.detener_sincronizacion()
        self._ejecutor.shutdown(wait=False)

    def __enter__(self):
        self.cargar()
        return self

    def __exit__(self, exc_type, exc, tb):
        self.cerrar()
        return False


def estado_actual() -> EstadoEscolar:
    """EstadoEscolar de la aplicación Flask activa."""
    return current_app.extensions['estado_escolar']
