"""
Módulo de Sincronización con Firestore (Service Layer)

El documento escolar completo vive en una única ruta bien conocida
('schools/default'): se escribe entero, se lee entero y los cambios llegan
enteros por la suscripción en tiempo real.
"""

from typing import Callable

from google.cloud import firestore

from .constants import COLECCION_REMOTA, DOCUMENTO_REMOTO, CAMPO_ULTIMA_ACTUALIZACION
from .logger import get_logger

logger = get_logger(__name__)


def _referencia(db, coleccion: str, documento: str):
    return db.collection(coleccion).document(documento)


def guardar_documento(db, datos: dict,
                      coleccion: str = COLECCION_REMOTA,
                      documento: str = DOCUMENTO_REMOTO) -> None:
    """
    Reemplaza el documento remoto con 'datos'.

    El servidor marca 'lastUpdated' con su propia hora. Los errores se propagan;
    el llamador decide si los registra o los ignora.
    """
    _referencia(db, coleccion, documento).set({
        **datos,
        CAMPO_ULTIMA_ACTUALIZACION: firestore.SERVER_TIMESTAMP
    })


def suscribir_documento(db, callback: Callable[[dict], None],
                        coleccion: str = COLECCION_REMOTA,
                        documento: str = DOCUMENTO_REMOTO):
    """
    Instala un listener en tiempo real sobre el documento escolar.

    Args:
        db: Cliente de Firestore.
        callback: Recibe el documento (sin 'lastUpdated') en cada cambio.

    Returns:
        El watch de Firestore; llamar a .unsubscribe() para liberarlo.
    """
    def _al_cambiar(snapshots, cambios, hora_lectura):
        for snapshot in snapshots:
            if not snapshot.exists:
                continue
            datos = snapshot.to_dict() or {}
            datos.pop(CAMPO_ULTIMA_ACTUALIZACION, None)
            try:
                callback(datos)
            except Exception as e:
                # El hilo del listener de Firestore no debe morir por un error nuestro
                logger.error(f"Error al procesar el cambio remoto: {e}", exc_info=True)

    logger.info(f"Suscribiendo a cambios de {coleccion}/{documento}...")
    return _referencia(db, coleccion, documento).on_snapshot(_al_cambiar)
