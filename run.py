"""
Punto de Entrada de la Aplicación (Runner)

Este script importa la "Application Factory" (create_app) del paquete
'escolar' e inicia el servidor de desarrollo de Flask.

Para ejecutar el servidor:
(Con el entorno virtual .venv activo)
$ python run.py
"""

from escolar import create_app

# Crea la instancia de la aplicación usando la factory
app = create_app()

if __name__ == "__main__":
    # Sin reloader: el controlador de periodos debe existir una sola vez por proceso
    app.run(host='0.0.0.0', port=5000, debug=app.config['DEBUG'], use_reloader=False)
