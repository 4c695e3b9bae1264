"""
Script Utilitario: setup_admin.py
Use este script para restablecer la contraseña de un usuario (por ejemplo,
el director) cuando nadie puede iniciar sesión.
"""

import getpass

from escolar import create_app
from escolar.core.security import hash_password

# Inicializa la aplicación para cargar configuración y documento escolar
app = create_app()


def restablecer_password(username, password):
    print(f"--- Restableciendo contraseña de: {username} ---")

    estado = app.extensions['estado_escolar']
    encontrado = []

    def _transformar(datos):
        for usuario in datos['users']:
            if usuario.get('username') == username:
                usuario.pop('password', None)
                usuario['passwordHash'] = hash_password(password)
                encontrado.append(usuario)
        return {'users': datos['users']} if encontrado else None

    estado.modificar(_transformar)

    if not encontrado:
        print(f"❌ ERROR: El usuario '{username}' no existe en el documento escolar.")
        return False

    print(f"✅ ÉXITO! La contraseña de '{username}' fue actualizada.")
    return True


if __name__ == "__main__":
    usuario_objetivo = input("Usuario a restablecer (ej. director): ").strip()
    nueva = getpass.getpass("Nueva contraseña: ")
    restablecer_password(usuario_objetivo, nueva)
    app.extensions['estado_escolar'].cerrar()
