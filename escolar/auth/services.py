"""
Capa de Servicio (Service Layer) de la Autenticación

Valida credenciales contra los usuarios del documento escolar y resuelve el
usuario de la sesión activa.
"""

import hmac
from typing import Optional

from flask import session

from escolar.core.errores import AccesoDenegado
from escolar.core.estado import estado_actual
from escolar.core.logger import get_logger
from escolar.core.security import hash_password, verify_password

# Inicializa el logger para este módulo
logger = get_logger(__name__)

CAMPOS_PUBLICOS = ('id', 'name', 'username', 'role', 'assignments', 'workSchedule')


def perfil_publico(usuario: dict) -> dict:
    """Datos del usuario sin credenciales."""
    return {campo: usuario[campo] for campo in CAMPOS_PUBLICOS if usuario.get(campo) is not None}


def buscar_usuario(datos: dict, username: str) -> Optional[dict]:
    return next((u for u in datos.get('users', []) if u.get('username') == username), None)


def _migrar_password(estado, usuario_id: str, password: str) -> None:
    """Reemplaza la contraseña en texto plano de un registro antiguo por su hash."""
    nuevo_hash = hash_password(password)

    def _transformar(datos: dict) -> dict:
        for usuario in datos['users']:
            if usuario.get('id') == usuario_id:
                usuario.pop('password', None)
                usuario['passwordHash'] = nuevo_hash
        return {'users': datos['users']}

    estado.modificar(_transformar)
    logger.info(f"Contraseña del usuario {usuario_id} migrada a hash.")


def autenticar(estado, username: str, password: str) -> dict:
    """
    Verifica usuario y contraseña.

    Los registros antiguos que todavía guardan 'password' en texto plano se
    validan una vez y se migran a 'passwordHash' en ese mismo momento.

    Returns:
        dict: Perfil público del usuario.

    Raises:
        AccesoDenegado: usuario inexistente o contraseña incorrecta.
    """
    usuario = buscar_usuario(estado.datos, username)
    if not usuario:
        logger.warning(f"Intento de acceso con usuario inexistente: {username}")
        raise AccesoDenegado("Usuario no encontrado.")

    if usuario.get('passwordHash'):
        valido = verify_password(password, usuario['passwordHash'])
    elif usuario.get('password'):
        valido = hmac.compare_digest(usuario['password'].encode('utf-8'), password.encode('utf-8'))
        if valido:
            _migrar_password(estado, usuario['id'], password)
    else:
        valido = False

    if not valido:
        logger.warning(f"Contraseña incorrecta para {username}")
        raise AccesoDenegado("Contraseña incorrecta.")

    logger.info(f"Inicio de sesión: {username} (Rol: {usuario.get('role')})")
    return perfil_publico(usuario)


def usuario_en_sesion() -> Optional[dict]:
    """
    Usuario de la sesión, leído de nuevo del documento escolar.

    Si el usuario fue eliminado o cambió de rol, la sesión refleja el cambio
    en la siguiente petición.
    """
    perfil = session.get('usuario')
    if not perfil:
        return None

    usuario = next((u for u in estado_actual().datos.get('users', [])
                    if u.get('id') == perfil.get('id')), None)
    if usuario is None:
        session.pop('usuario', None)
        return None
    return perfil_publico(usuario)
