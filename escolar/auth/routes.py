"""
Rutas del Módulo de Autenticación

Gestiona /auth/login, /auth/logout y /auth/sesion.
"""

from flask import jsonify, session, abort

from . import auth_bp
from . import services as auth_services
from .forms import LoginForm
from escolar.core.errores import AccesoDenegado
from escolar.core.estado import estado_actual
from escolar.core.extensions import limiter

CICLO_POR_DEFECTO = '2025-2026'


@auth_bp.route('/login', methods=['POST'])
@limiter.limit("10 per minute")
def login():
    form = LoginForm()
    if not form.validate_on_submit():
        return jsonify(error="Datos de acceso incompletos.", campos=form.errors), 400

    try:
        perfil = auth_services.autenticar(
            estado_actual(),
            form.username.data.strip(),
            form.password.data
        )
    except AccesoDenegado as e:
        return jsonify(error=str(e)), 401

    session['usuario'] = {'id': perfil['id'], 'username': perfil['username']}
    session['ciclo'] = form.ciclo.data or CICLO_POR_DEFECTO
    return jsonify(usuario=perfil, ciclo=session['ciclo'])


@auth_bp.route('/logout', methods=['POST'])
def logout():
    session.pop('usuario', None)
    session.pop('ciclo', None)
    return jsonify(ok=True)


@auth_bp.route('/sesion')
def sesion():
    usuario = auth_services.usuario_en_sesion()
    if not usuario:
        abort(401, "No hay sesión activa.")

    estado = estado_actual()
    return jsonify(
        usuario=usuario,
        ciclo=session.get('ciclo', CICLO_POR_DEFECTO),
        conectado=estado.conectado,
        escuela=estado.datos.get('name')
    )
