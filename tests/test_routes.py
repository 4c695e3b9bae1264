from unittest.mock import call, patch

from conftest import PASSWORD
from config import Config
from escolar import create_app


def _crear_alumno(client, **campos):
    cuerpo = {'name': 'Ana López', 'grade': '1°', 'group': 'A'}
    cuerpo.update(campos)
    return client.post('/academico/estudiantes', json=cuerpo)


def _abrir_periodos(estado, *periodos):
    estado.aplicar({'allowedPeriods': list(periodos)})


# === APLICACIÓN ===

def test_health_check(client):
    """Health check en modo local."""
    response = client.get('/health')
    assert response.status_code == 200
    assert "Sistema Escolar en servicio (local)" in response.data.decode('utf-8')


def test_404_es_json(client):
    response = client.get('/rota-que-no-existe')
    assert response.status_code == 404
    assert 'error' in response.get_json()


# === AUTENTICACIÓN ===

def test_login_correcto(client, login):
    response = login('director')
    assert response.status_code == 200
    cuerpo = response.get_json()
    assert cuerpo['usuario']['role'] == 'admin'
    assert cuerpo['ciclo'] == '2025-2026'
    assert 'passwordHash' not in cuerpo['usuario']

    sesion = client.get('/auth/sesion').get_json()
    assert sesion['usuario']['username'] == 'director'
    assert sesion['conectado'] is False


def test_login_incorrecto(client, login):
    response = login('director', 'otra')
    assert response.status_code == 401
    assert response.get_json()['error'] == "Contraseña incorrecta."

    response = login('nadie')
    assert response.status_code == 401
    assert client.get('/auth/sesion').status_code == 401


def test_login_incompleto(client):
    response = client.post('/auth/login', json={'username': 'director'})
    assert response.status_code == 400
    assert 'password' in response.get_json()['campos']


def test_login_con_ciclo(client):
    response = client.post('/auth/login', json={'username': 'profe', 'password': PASSWORD, 'ciclo': '2026-2027'})
    assert response.get_json()['ciclo'] == '2026-2027'


def test_password_en_texto_plano_se_migra(client, login, estado):
    def _legado(datos):
        for usuario in datos['users']:
            if usuario['id'] == 't1':
                usuario.pop('passwordHash')
                usuario['password'] = 'viejo123'
        return {'users': datos['users']}
    estado.modificar(_legado)

    assert login('profe', 'viejo123').status_code == 200

    profe = next(u for u in estado.datos['users'] if u['id'] == 't1')
    assert 'password' not in profe
    assert profe['passwordHash'].startswith('$2')
    assert login('profe', 'viejo123').status_code == 200


def test_logout(client, login):
    login()
    client.post('/auth/logout')
    assert client.get('/auth/sesion').status_code == 401


# === ADMIN ===

def test_admin_requiere_sesion_y_rol(client, login):
    assert client.get('/admin/usuarios').status_code == 401

    login('profe')
    assert client.get('/admin/usuarios').status_code == 403

    login('subdirector')
    assert client.get('/admin/usuarios').status_code == 200
    # La conexión a la nube es exclusiva del director
    assert client.get('/admin/conexion').status_code == 403


def test_gestion_de_usuarios(client, login, estado):
    login()
    response = client.post('/admin/usuarios', json={
        'name': 'Mtra. Rosa Díaz', 'username': 'rosa', 'password': 'clave123', 'role': 'teacher',
        'assignments': [{'grade': '2°', 'group': 'AC', 'subject': 'Tecnología', 'technology': 'Cocina'}]
    })
    assert response.status_code == 201
    usuario = response.get_json()['usuario']
    assert [a['group'] for a in usuario['assignments']] == ['A', 'C']

    listado = client.get('/admin/usuarios').get_json()['usuarios']
    assert any(u['username'] == 'rosa' for u in listado)
    assert all('passwordHash' not in u for u in listado)

    # Usuario repetido
    response = client.post('/admin/usuarios', json={
        'name': 'Otra Rosa', 'username': 'rosa', 'password': 'clave123', 'role': 'apoyo'
    })
    assert response.status_code == 400

    response = client.put(f"/admin/usuarios/{usuario['id']}", json={
        'name': 'Mtra. Rosa Díaz', 'username': 'rosa', 'role': 'subdirector'
    })
    assert response.status_code == 200
    assert 'assignments' not in response.get_json()['usuario']
    assert estado.datos['subdirector'] == 'Mtra. Rosa Díaz'
    assert login('rosa', 'clave123').status_code == 200

    login()
    assert client.delete(f"/admin/usuarios/{usuario['id']}").status_code == 200
    assert client.delete(f"/admin/usuarios/{usuario['id']}").status_code == 404
    assert client.delete('/admin/usuarios/admin').status_code == 400


def test_tecnologia_sin_taller_se_rechaza(client, login):
    login()
    response = client.post('/admin/usuarios', json={
        'name': 'Prof. Luis', 'username': 'luis', 'password': 'clave123', 'role': 'teacher',
        'assignments': [{'grade': '1°', 'group': 'A', 'subject': 'Tecnología'}]
    })
    assert response.status_code == 400
    assert 'taller' in response.get_json()['error']


def test_actualizar_periodos(client, login, estado):
    login()
    response = client.put('/admin/periodos', json={
        'allowedPeriods': ['inter_1', 'trim_1', 'trim_1'],
        'periodDeadlines': {'trim_1': '2025-11-28T14:00', 'inter_2': ''}
    })
    assert response.status_code == 200
    assert response.get_json() == {
        'allowedPeriods': ['inter_1', 'trim_1'],
        'periodDeadlines': {'trim_1': '2025-11-28T14:00'}
    }
    assert estado.datos['allowedPeriods'] == ['inter_1', 'trim_1']

    # Cerrar todos es válido
    response = client.put('/admin/periodos', json={'allowedPeriods': []})
    assert response.get_json()['allowedPeriods'] == []


def test_actualizar_periodos_invalidos(client, login):
    login()
    assert client.put('/admin/periodos', json={'allowedPeriods': ['trim_9']}).status_code == 400
    assert client.put('/admin/periodos', json={'periodDeadlines': {'trim_1': 'viernes'}}).status_code == 400
    assert client.put('/admin/periodos', json={}).status_code == 400


def test_conexion_invalida_muestra_mensaje(client, login, estado):
    login()
    response = client.post('/admin/conexion', json={'configuracion': 'firebase = ???'})
    assert response.status_code == 400
    assert response.get_json()['error'].startswith("Error en el formato")
    assert estado.conectado is False

    response = client.post('/admin/conexion', json={})
    assert response.status_code == 400


def test_horarios_crear_reemplazar_eliminar(client, login, estado):
    login()
    response = client.post('/admin/horarios', json={
        'teacherId': 't1', 'day': 'Miércoles', 'period': 3, 'gradeGroup': '1A'
    })
    assert response.status_code == 201
    horario = response.get_json()['horario']
    assert horario['type'] == 'academic'
    client.post('/admin/horarios', json={'teacherId': 't1', 'day': 'Lunes', 'period': '5', 'gradeGroup': '2A'})

    listado = client.get('/admin/horarios', query_string={'teacherId': 't1'}).get_json()['horarios']
    assert [(h['day'], h['period']) for h in listado] == [('Lunes', 5), ('Miércoles', 3)]
    assert client.get('/admin/horarios', query_string={'teacherId': 'sub1'}).get_json()['horarios'] == []

    url = f"/admin/horarios/{horario['id']}"
    response = client.put(url, json={'teacherId': 't1', 'day': 'Miércoles', 'period': 4, 'gradeGroup': '1B'})
    assert response.status_code == 200
    assert response.get_json()['horario']['id'] == horario['id']
    assert len(estado.datos['schedules']) == 2

    assert client.delete(url).status_code == 200
    assert client.delete(url).status_code == 404
    assert client.put(url, json={'teacherId': 't1', 'day': 'Lunes', 'period': 1, 'gradeGroup': '1A'}).status_code == 404


def test_horarios_invalidos(client, login):
    login()
    base = {'teacherId': 't1', 'day': 'Lunes', 'period': 1, 'gradeGroup': '1A'}
    assert client.post('/admin/horarios', json=base).status_code == 201

    response = client.post('/admin/horarios', json=dict(base, gradeGroup='2C'))
    assert response.status_code == 400
    assert 'ya tiene clase' in response.get_json()['error']

    assert client.post('/admin/horarios', json=dict(base, day='Sábado')).status_code == 400
    assert client.post('/admin/horarios', json=dict(base, period=8)).status_code == 400
    assert client.post('/admin/horarios', json=dict(base, period=True)).status_code == 400
    assert client.post('/admin/horarios', json=dict(base, teacherId='nadie')).status_code == 400
    assert client.post('/admin/horarios', json=dict(base, period=2, gradeGroup='')).status_code == 400
    assert client.post('/admin/horarios', json=dict(base, period=2, type='recreo')).status_code == 400

    login('profe')
    assert client.post('/admin/horarios', json=dict(base, period=2)).status_code == 403


def test_materias_ocultas_no_cuentan_en_promedio(client, login, estado):
    login()
    alumno_id = _crear_alumno(client).get_json()['estudiante']['id']
    url = f'/academico/estudiantes/{alumno_id}/calificaciones'
    _abrir_periodos(estado, 'trim_1', 'trim_2', 'trim_3')
    for periodo in ('trim_1', 'trim_2', 'trim_3'):
        client.put(url, json={'subject': 'Matemáticas', 'period': periodo, 'value': '9'})
        client.put(url, json={'subject': 'Español', 'period': periodo, 'value': '6'})
    assert client.get(f'/academico/estudiantes/{alumno_id}/promedios').get_json()['general'] == '7.5'

    response = client.put('/admin/estructura', json={'grade': '1°', 'hiddenSubjects': ['Español']})
    assert response.status_code == 200
    assert response.get_json()['grado']['hiddenSubjects'] == ['Español']

    assert client.get(f'/academico/estudiantes/{alumno_id}/promedios').get_json()['general'] == '9.0'
    concentrado = client.get('/academico/concentrado', query_string={
        'grade': '1°', 'group': 'A', 'trimestre': 1
    }).get_json()
    assert 'Español' not in concentrado['promedios']
    # Ocultar no borra lo capturado
    assert estado.datos['studentsData'][0]['grades']['Español']['trim_1'] == '6'


def test_materia_nueva_se_agrega_a_los_alumnos(client, login, estado):
    login()
    _crear_alumno(client)
    _crear_alumno(client, name='Carla Díaz', grade='2°')
    estructura = client.get('/academico/estructura').get_json()['gradesStructure']
    materias = next(g['subjects'] for g in estructura if g['grade'] == '1°')

    response = client.put('/admin/estructura', json={'grade': '1°', 'subjects': materias + ['Robótica']})
    assert response.status_code == 200

    primero, segundo = estado.datos['studentsData']
    assert primero['grades']['Robótica']['trim_1'] == ''
    assert 'Robótica' not in segundo['grades']


def test_estructura_invalida(client, login):
    login()
    assert client.put('/admin/estructura', json={'subjects': ['Español']}).status_code == 400
    assert client.put('/admin/estructura', json={'grade': '4°', 'subjects': ['Español']}).status_code == 404
    assert client.put('/admin/estructura', json={'grade': '1°'}).status_code == 400
    assert client.put('/admin/estructura', json={'grade': '1°', 'subjects': []}).status_code == 400
    assert client.put('/admin/estructura', json={'grade': '1°', 'subjects': 'Español'}).status_code == 400
    response = client.put('/admin/estructura', json={'grade': '1°', 'hiddenSubjects': ['Química']})
    assert response.status_code == 400
    assert 'Química' in response.get_json()['error']


def test_talleres(client, login, estado):
    login()
    response = client.put('/admin/talleres', json={'technologies': ['Cocina', ' Robótica ', 'Cocina']})
    assert response.status_code == 200
    assert response.get_json()['technologies'] == ['Cocina', 'Robótica']
    assert estado.datos['technologies'] == ['Cocina', 'Robótica']

    assert client.put('/admin/talleres', json={'technologies': []}).status_code == 400
    assert client.put('/admin/talleres', json={}).status_code == 400
    assert _crear_alumno(client, technology='Electrónica').status_code == 400


# === ACADÉMICO ===

def test_alta_de_alumno(client, login, estado):
    login()
    response = _crear_alumno(client, technology='Cocina')
    assert response.status_code == 201
    alumno = response.get_json()['estudiante']
    assert alumno['id'] == 1
    assert alumno['name'] == 'ANA LÓPEZ'
    assert alumno['grades']['Matemáticas']['trim_1'] == ''
    assert estado.datos['studentsCount'] == 1

    assert _crear_alumno(client, name='Beto Ruiz').get_json()['estudiante']['id'] == 2
    assert _crear_alumno(client, group='Z').status_code == 400
    assert _crear_alumno(client, name='R2D2').status_code == 400

    listado = client.get('/academico/estudiantes', query_string={'grade': '1°', 'group': 'A'})
    listado = listado.get_json()['estudiantes']
    assert [a['name'] for a in listado] == ['ANA LÓPEZ', 'BETO RUIZ']


def test_alta_con_ids_antiguos_de_texto(client, login, estado):
    estado.aplicar({'studentsData': [
        {'id': '7', 'name': 'LEGADO', 'grade': '1°', 'group': 'A', 'grades': {}, 'status': 'active'},
        {'id': 3, 'name': 'CARLA', 'grade': '1°', 'group': 'A', 'grades': {}, 'status': 'active'},
    ]})
    login()
    response = _crear_alumno(client)
    assert response.status_code == 201
    assert response.get_json()['estudiante']['id'] == 4


def test_docente_no_da_de_alta_alumnos(client, login):
    login('profe')
    assert _crear_alumno(client).status_code == 403


def test_captura_respeta_periodos_abiertos(client, login, estado):
    login()
    alumno_id = _crear_alumno(client).get_json()['estudiante']['id']
    url = f'/academico/estudiantes/{alumno_id}/calificaciones'

    response = client.put(url, json={'subject': 'Matemáticas', 'period': 'trim_1', 'value': '9'})
    assert response.status_code == 403
    assert 'cerrado' in response.get_json()['error']

    _abrir_periodos(estado, 'inter_1', 'trim_1')
    response = client.put(url, json={'subject': 'Matemáticas', 'period': 'trim_1', 'value': '9'})
    assert response.status_code == 200
    assert response.get_json()['calificaciones']['trim_1'] == '9'

    # Cerrar el periodo no borra lo capturado
    _abrir_periodos(estado, 'inter_1')
    alumno = estado.datos['studentsData'][0]
    assert alumno['grades']['Matemáticas']['trim_1'] == '9'


def test_captura_valida_valores(client, login, estado):
    login()
    alumno_id = _crear_alumno(client).get_json()['estudiante']['id']
    url = f'/academico/estudiantes/{alumno_id}/calificaciones'
    _abrir_periodos(estado, 'inter_1', 'trim_1')

    assert client.put(url, json={'subject': 'Matemáticas', 'period': 'inter_1', 'value': 'AMARILLO'}).status_code == 400
    assert client.put(url, json={'subject': 'Matemáticas', 'period': 'trim_1', 'value': '11'}).status_code == 400
    assert client.put(url, json={'subject': 'Química', 'period': 'trim_1', 'value': '8'}).status_code == 400
    assert client.put(url, json={'subject': 'Matemáticas', 'period': 'trim_7', 'value': '8'}).status_code == 400
    assert client.put(url, json={'subject': 'Matemáticas'}).status_code == 400
    assert client.put('/academico/estudiantes/99/calificaciones',
                      json={'subject': 'Matemáticas', 'period': 'inter_1', 'value': 'RED'}).status_code == 404


def test_docente_captura_solo_sus_materias(client, login, estado):
    login()
    alumno_id = _crear_alumno(client).get_json()['estudiante']['id']
    url = f'/academico/estudiantes/{alumno_id}/calificaciones'

    login('profe')
    response = client.put(url, json={'subject': 'Matemáticas', 'period': 'inter_1', 'value': 'RED'})
    assert response.status_code == 200
    response = client.put(url, json={'subject': 'Español', 'period': 'inter_1', 'value': 'RED'})
    assert response.status_code == 403

    riesgo = client.get('/academico/riesgo', query_string={
        'grade': '1°', 'group': 'A', 'corte': 1, 'subject': 'Matemáticas'
    }).get_json()
    assert riesgo['riesgo'][0]['riskSubjects'] == ['Matemáticas']


def test_promedios_y_concentrado(client, login, estado):
    login()
    alumno_id = _crear_alumno(client).get_json()['estudiante']['id']
    url = f'/academico/estudiantes/{alumno_id}/calificaciones'
    _abrir_periodos(estado, 'trim_1', 'trim_2', 'trim_3')
    for periodo, valor in (('trim_1', '8'), ('trim_2', '9'), ('trim_3', '10')):
        client.put(url, json={'subject': 'Matemáticas', 'period': periodo, 'value': valor})

    promedios = client.get(f'/academico/estudiantes/{alumno_id}/promedios').get_json()
    assert promedios['finales']['Matemáticas'] == '9.0'
    assert promedios['finales']['Español'] == ''
    assert promedios['general'] == '9.0'

    concentrado = client.get('/academico/concentrado', query_string={
        'grade': '1°', 'group': 'A', 'trimestre': 1
    }).get_json()
    assert concentrado['promedios']['Matemáticas'] == '8.0'
    assert concentrado['promedios']['Español'] == '-'


def test_baja_de_alumno(client, login, estado):
    login()
    alumno_id = _crear_alumno(client).get_json()['estudiante']['id']
    assert client.delete(f'/academico/estudiantes/{alumno_id}').status_code == 200
    assert client.delete(f'/academico/estudiantes/{alumno_id}').status_code == 404
    assert estado.datos['studentsCount'] == 0


def test_edicion_de_alumno(client, login, estado):
    login()
    alumno_id = _crear_alumno(client, technology='Cocina').get_json()['estudiante']['id']
    url = f'/academico/estudiantes/{alumno_id}'

    response = client.put(url, json={'name': 'Ana María López', 'group': 'B'})
    assert response.status_code == 200
    alumno = response.get_json()['estudiante']
    assert alumno['name'] == 'ANA MARÍA LÓPEZ'
    assert (alumno['grade'], alumno['group']) == ('1°', 'B')

    response = client.put(url, json={'grade': '2°', 'group': 'A', 'technology': None})
    alumno = response.get_json()['estudiante']
    assert 'Física' in alumno['grades']
    assert 'Biología' in alumno['grades']
    assert 'technology' not in alumno

    assert client.put(url, json={'group': 'Z'}).status_code == 400
    assert client.put(url, json={'technology': 'Robótica'}).status_code == 400
    assert client.put(url, json={'status': 'expulsado'}).status_code == 400
    assert client.put(url, json={}).status_code == 400
    assert client.put('/academico/estudiantes/99', json={'name': 'Nadie Aquí'}).status_code == 404

    login('profe')
    assert client.put(url, json={'name': 'Otro Nombre'}).status_code == 403


def test_egreso_de_alumno(client, login, estado):
    login()
    alumno_id = _crear_alumno(client).get_json()['estudiante']['id']
    _crear_alumno(client, name='Beto Ruiz')

    response = client.put(f'/academico/estudiantes/{alumno_id}', json={'status': 'graduated'})
    assert response.status_code == 200
    assert response.get_json()['estudiante']['status'] == 'graduated'

    activos = client.get('/academico/estudiantes').get_json()['estudiantes']
    assert [a['name'] for a in activos] == ['BETO RUIZ']
    todos = client.get('/academico/estudiantes', query_string={'egresados': '1'}).get_json()['estudiantes']
    assert [a['name'] for a in todos] == ['ANA LÓPEZ', 'BETO RUIZ']
    assert estado.datos['studentsCount'] == 2


def test_docente_consulta_su_horario(client, login):
    login()
    client.post('/admin/horarios', json={'teacherId': 't1', 'day': 'Martes', 'period': 2, 'gradeGroup': '1A'})
    client.post('/admin/horarios', json={'teacherId': 'sub1', 'day': 'Lunes', 'period': 1,
                                         'gradeGroup': '2B', 'type': 'support'})

    login('profe')
    horario = client.get('/academico/horario').get_json()['horario']
    assert [(h['day'], h['period'], h['gradeGroup']) for h in horario] == [('Martes', 2, '1A')]


# === REGISTROS DE SUBDIRECCIÓN ===

def test_citatorios_solo_los_emite_la_direccion(client, login):
    login('profe')
    response = client.post('/registros/citatorios', json={'studentName': 'ANA', 'date': '2025-10-01'})
    assert response.status_code == 403

    login('subdirector')
    response = client.post('/registros/citatorios', json={
        'studentName': 'ANA', 'group': '1° A', 'date': '2025-10-01', 'time': '08:00',
        'reason': 'Tareas', 'teacherId': 't1'
    })
    assert response.status_code == 201
    citatorio = response.get_json()['registro']
    assert citatorio['teacherName'] == 'Prof. Juan Pérez (Matemáticas)'
    assert citatorio['createdAt']

    client.post('/registros/citatorios', json={'studentName': 'BETO', 'date': '2025-10-02'})

    # El docente solo ve los citatorios a su nombre
    login('profe')
    registros = client.get('/registros/citatorios').get_json()['registros']
    assert [r['studentName'] for r in registros] == ['ANA']


def test_bitacora_crear_reemplazar_eliminar(client, login, estado):
    login('profe')
    response = client.post('/registros/bitacora', json={
        'logType': 'accidente', 'studentName': 'ANA LÓPEZ', 'narrative': 'Se cayó en el patio.',
        'informedParent': True, 'campoDesconocido': 'x'
    })
    assert response.status_code == 201
    registro = response.get_json()['registro']
    assert registro['informedParent'] is True
    assert registro['informedDirector'] is False
    assert 'campoDesconocido' not in registro

    response = client.put(f"/registros/bitacora/{registro['id']}", json={
        'logType': 'conducta', 'studentName': 'ANA LÓPEZ', 'narrative': 'Corrección.'
    })
    assert response.status_code == 200
    editado = response.get_json()['registro']
    assert editado['id'] == registro['id']
    assert editado['createdAt'] == registro['createdAt']
    assert editado['informedParent'] is False

    assert client.post('/registros/bitacora', json={'logType': 'otro', 'studentName': 'X'}).status_code == 400
    assert client.post('/registros/minutas', json={}).status_code == 400

    assert client.delete(f"/registros/bitacora/{registro['id']}").status_code == 200
    assert client.delete(f"/registros/bitacora/{registro['id']}").status_code == 404
    assert estado.datos['visitLogs'] == []


def test_registros_tipo_desconocido(client, login):
    login()
    assert client.get('/registros/expedientes').status_code == 404


def test_minutas_nuevas_primero(client, login):
    login()
    client.post('/registros/minutas', json={'studentName': 'ANA', 'subject': 'Primera'})
    client.post('/registros/minutas', json={'studentName': 'BETO', 'subject': 'Segunda'})
    registros = client.get('/registros/minutas').get_json()['registros']
    assert [r['subject'] for r in registros] == ['Segunda', 'Primera']


# === CICLO DE VIDA ===

def test_tareas_de_fondo_se_cierran_en_orden(tmp_path):

    class ConfigConTareas(Config):
        TESTING = True
        DIRECTORIO_DATOS = str(tmp_path / 'datos')
        INICIAR_TAREAS = True
        INTERVALO_REVISION_PERIODOS = 60
        RATELIMIT_ENABLED = False
        PASSWORD_INICIAL = PASSWORD

    with patch('escolar.atexit.register') as registrar:
        app = create_app(ConfigConTareas)

    estado = app.extensions['estado_escolar']
    controlador = app.extensions['controlador_periodos']
    try:
        assert controlador.activo
        # atexit ejecuta al revés: primero se detiene el controlador, al final se cierra el estado
        assert registrar.call_args_list == [call(estado.cerrar), call(controlador.detener, 1)]
    finally:
        controlador.detener(1)
        estado.cerrar()
    assert not controlador.activo


def test_sin_tareas_de_fondo(app):
    assert not app.extensions['controlador_periodos'].activo
