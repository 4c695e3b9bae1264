import os

import pytest

# Config valida SECRET_KEY al importarse (Fail Fast)
os.environ.setdefault('SECRET_KEY', 'clave-de-pruebas')
os.environ['PASSWORD_INICIAL'] = 'secreto123'

from config import Config  # noqa: E402
from escolar import create_app  # noqa: E402
from escolar.core.estado import EstadoEscolar  # noqa: E402
from escolar.core.local_store import AlmacenLocal  # noqa: E402

PASSWORD = 'secreto123'


class EjecutorInmediato:
    """Sustituto del ThreadPoolExecutor que ejecuta en el mismo hilo."""

    def __init__(self):
        self.tareas = []

    def submit(self, fn, *args, **kwargs):
        self.tareas.append((fn, args))
        return fn(*args, **kwargs)

    def shutdown(self, wait=True):
        pass


@pytest.fixture
def app(tmp_path):
    class TestConfig(Config):
        TESTING = True
        DIRECTORIO_DATOS = str(tmp_path / 'datos')
        INICIAR_TAREAS = False
        RATELIMIT_ENABLED = False
        PASSWORD_INICIAL = PASSWORD

    app = create_app(TestConfig)
    yield app
    app.extensions['estado_escolar'].cerrar()


@pytest.fixture
def client(app):
    return app.test_client()


@pytest.fixture
def estado(app):
    return app.extensions['estado_escolar']


@pytest.fixture
def login(client):
    def _login(username='director', password=PASSWORD):
        client.post('/auth/logout')
        return client.post('/auth/login', json={'username': username, 'password': password})
    return _login


@pytest.fixture
def almacen(tmp_path):
    return AlmacenLocal(tmp_path / 'almacen')


@pytest.fixture
def estado_local(almacen):
    """EstadoEscolar en modo local, fuera de la aplicación Flask."""
    with EstadoEscolar(almacen, password_inicial=PASSWORD, ejecutor=EjecutorInmediato()) as estado:
        yield estado
