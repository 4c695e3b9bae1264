"""
Módulo de Conexión con la Base de Datos Remota (Core)

La configuración de Firestore la pega el director desde el panel de conexión
y se guarda en el almacén local bajo su propia clave. Su presencia (y que sea
válida) decide al arranque si el sistema opera "en línea" o "solo local".
"""

import json
import re
from typing import Optional

from google.auth.exceptions import DefaultCredentialsError
from google.cloud import firestore
from google.oauth2 import service_account

from .constants import CLAVE_CONFIG_REMOTA
from .errores import ConfiguracionInvalida
from .logger import get_logger

logger = get_logger(__name__)

# Permite pegar el bloque tal como lo muestra la consola: "const firebaseConfig = {...};"
_PREFIJO_ASIGNACION = re.compile(r'^\s*(?:const|let|var)\s+\w+\s*=\s*')
_SUFIJO_PUNTO_Y_COMA = re.compile(r';\s*$')

MENSAJE_FORMATO = "Error en el formato. Asegúrate de pegar solo el objeto JSON (entre llaves)."


def _proyecto(config: dict) -> Optional[str]:
    return config.get('project_id') or config.get('projectId')


def interpretar_config(texto: str) -> dict:
    """
    Limpia y valida el bloque de configuración pegado por el usuario.

    Raises:
        ConfiguracionInvalida: si no es un objeto JSON con el id del proyecto.
    """
    if not texto or not texto.strip():
        raise ConfiguracionInvalida(MENSAJE_FORMATO)

    limpio = _SUFIJO_PUNTO_Y_COMA.sub('', _PREFIJO_ASIGNACION.sub('', texto.strip()))
    try:
        config = json.loads(limpio)
    except json.JSONDecodeError as e:
        raise ConfiguracionInvalida(MENSAJE_FORMATO) from e

    if not isinstance(config, dict):
        raise ConfiguracionInvalida(MENSAJE_FORMATO)
    if not _proyecto(config):
        raise ConfiguracionInvalida("La configuración no indica el proyecto (project_id).")

    return config


def crear_cliente(config: dict) -> firestore.Client:
    """
    Crea el cliente de Firestore para la configuración dada.

    Con una cuenta de servicio completa (private_key) se usan sus credenciales;
    en otro caso el SDK busca las credenciales por defecto del entorno
    ('GOOGLE_APPLICATION_CREDENTIALS').
    """
    proyecto = _proyecto(config)
    if config.get('private_key'):
        try:
            credenciales = service_account.Credentials.from_service_account_info(config)
        except (ValueError, KeyError) as e:
            raise ConfiguracionInvalida(f"Credenciales de la cuenta de servicio inválidas: {e}") from e
        return firestore.Client(project=proyecto, credentials=credenciales)

    try:
        return firestore.Client(project=proyecto)
    except DefaultCredentialsError as e:
        raise ConfiguracionInvalida(f"No se encontraron credenciales para el proyecto {proyecto}.") from e


def guardar_config(almacen, config: dict) -> None:
    almacen.escribir(CLAVE_CONFIG_REMOTA, json.dumps(config))


def eliminar_config(almacen) -> None:
    almacen.eliminar(CLAVE_CONFIG_REMOTA)


def conectar_desde_almacen(almacen) -> Optional[firestore.Client]:
    """
    Decide el modo de operación al arranque.

    Returns:
        El cliente de Firestore si hay configuración válida guardada;
        None para operar solo en local.
    """
    texto = almacen.leer(CLAVE_CONFIG_REMOTA)
    if not texto:
        logger.info("Modo local: no hay configuración remota guardada.")
        return None

    try:
        config = interpretar_config(texto)
        db = crear_cliente(config)
    except ConfiguracionInvalida as e:
        logger.error(f"Configuración remota guardada inválida, se opera en modo local: {e}")
        return None
    except Exception as e:
        logger.error(f"Error al inicializar Firestore, se opera en modo local: {e}", exc_info=True)
        return None

    logger.info(f"Conexión con Firestore establecida (proyecto {_proyecto(config)}).")
    return db
