"""
Utilidades de seguridad: hash y verificación de contraseñas.

Las contraseñas nunca se guardan en texto plano dentro del documento escolar;
cada usuario conserva solo el hash bcrypt en 'passwordHash'.
"""

from functools import lru_cache

import bcrypt


def hash_password(plain_password: str) -> str:
    """Genera el hash bcrypt de la contraseña en texto."""
    salt = bcrypt.gensalt()
    return bcrypt.hashpw(plain_password.encode("utf-8"), salt).decode("utf-8")


def verify_password(plain_password: str, hashed_password: str) -> bool:
    """Comprueba si la contraseña en texto coincide con el hash."""
    if not plain_password or not hashed_password:
        return False
    try:
        return bcrypt.checkpw(
            plain_password.encode("utf-8"),
            hashed_password.encode("utf-8"),
        )
    except ValueError:
        # Hash con formato inválido
        return False


@lru_cache(maxsize=4)
def hash_password_inicial(plain_password: str) -> str:
    """Hash cacheado por proceso para los usuarios semilla."""
    return hash_password(plain_password)
