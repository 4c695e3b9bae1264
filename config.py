"""
Módulo de Configuración

Define la clase de configuración principal. Implementa el patrón 'Fail Fast':
si falta una variable crítica, la aplicación ni siquiera arranca.
"""

import os
from dotenv import load_dotenv

# Carga variables del archivo .env
load_dotenv()


class Config:
    """
    Clase de configuración base de la aplicación.
    """

    # === SEGURIDAD CRÍTICA (Fail Fast) ===
    SECRET_KEY = os.environ.get('SECRET_KEY')
    if not SECRET_KEY:
        raise ValueError("ERROR CRÍTICO: 'SECRET_KEY' no encontrada en el .env. La aplicación no puede iniciar insegura.")

    # === PERSISTENCIA LOCAL ===
    # Directorio del almacén clave-valor (documento escolar y configuración remota)
    DIRECTORIO_DATOS = os.environ.get('DIRECTORIO_DATOS', os.path.join('instance', 'datos'))

    # === FIRESTORE ===
    COLECCION_REMOTA = os.environ.get('COLECCION_REMOTA', 'schools')
    DOCUMENTO_REMOTO = os.environ.get('DOCUMENTO_REMOTO', 'default')

    # === PERIODOS ===
    ZONA_HORARIA = os.environ.get('ZONA_HORARIA', 'America/Mexico_City')
    INTERVALO_REVISION_PERIODOS = float(os.environ.get('INTERVALO_REVISION_PERIODOS', '10'))

    # Arranca la revisión de fechas límite y la suscripción a Firestore
    INICIAR_TAREAS = os.environ.get('INICIAR_TAREAS', 'True').lower() in ('true', '1')

    # === USUARIOS SEMILLA ===
    PASSWORD_INICIAL = os.environ.get('PASSWORD_INICIAL', '123')
    if PASSWORD_INICIAL == '123':
        print("AVISO: 'PASSWORD_INICIAL' no configurada. Los usuarios semilla usarán la contraseña de fábrica.")

    # === FLASK ===
    DEBUG = os.environ.get('FLASK_DEBUG', 'False').lower() in ('true', '1')

    # === RATE LIMITING ===
    RATELIMIT_ENABLED = os.environ.get('RATELIMIT_ENABLED', 'True').lower() in ('true', '1')
    RATELIMIT_STORAGE_URI = os.environ.get('RATELIMIT_STORAGE_URI', 'memory://')
