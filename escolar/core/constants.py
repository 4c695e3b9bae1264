"""
Constantes Globales del Sistema.
Fuente única de verdad para la estructura escolar, periodos y roles.
"""

# === ESTRUCTURA ESCOLAR ===

GRADOS_ESCOLARES = [
    {
        'grade': '1°',
        'groups': ['A', 'B', 'C', 'D'],
        'subjects': ['Español', 'Matemáticas', 'Biología', 'Inglés', 'Formación Cívica y Ética',
                     'Artes', 'Educación Física', 'Tecnología'],
        'hiddenSubjects': []
    },
    {
        'grade': '2°',
        'groups': ['A', 'B', 'C', 'D'],
        'subjects': ['Español', 'Matemáticas', 'Física', 'Inglés', 'Formación Cívica y Ética',
                     'Artes', 'Educación Física', 'Tecnología'],
        'hiddenSubjects': []
    },
    {
        'grade': '3°',
        'groups': ['A', 'B', 'C', 'D'],
        'subjects': ['Español', 'Matemáticas', 'Química', 'Inglés', 'Formación Cívica y Ética',
                     'Artes', 'Educación Física', 'Tecnología'],
        'hiddenSubjects': []
    },
]

TECNOLOGIAS = [
    'Cocina',
    'Circuitos eléctricos',
    'Electrónica',
    'Diseño arquitectónico',
    'Industria del vestido'
]

DIAS_SEMANA = ['Lunes', 'Martes', 'Miércoles', 'Jueves', 'Viernes']
MODULOS_CLASE = [1, 2, 3, 4, 5, 6, 7]

# Tipo de fila de la sábana de horarios
TIPOS_HORARIO = ('academic', 'technology', 'support')

# === PERIODOS DE EVALUACIÓN ===
# Tres cortes de avance (semáforo) y tres cierres trimestrales (numéricos)

PERIODOS_AVANCE = ('inter_1', 'inter_2', 'inter_3')
PERIODOS_TRIMESTRE = ('trim_1', 'trim_2', 'trim_3')
CLAVES_PERIODO = ('inter_1', 'trim_1', 'inter_2', 'trim_2', 'inter_3', 'trim_3')

SEMAFORO_VERDE = 'GREEN'
SEMAFORO_ROJO = 'RED'
VALORES_SEMAFORO = (SEMAFORO_VERDE, SEMAFORO_ROJO, '')

CALIFICACION_MINIMA = 5.0
CALIFICACION_MAXIMA = 10.0

# === ROLES ===

ROL_ADMIN = 'admin'
ROL_DOCENTE = 'teacher'
ROL_SUBDIRECTOR = 'subdirector'

ROLES = ('admin', 'teacher', 'subdirector', 'administrative',
         'red_escolar', 'laboratorista', 'apoyo')

# Personal con horario laboral semanal en lugar de asignaturas
ROLES_APOYO = ('administrative', 'red_escolar', 'laboratorista', 'apoyo')

ROLES_DIRECTIVOS = (ROL_ADMIN, ROL_SUBDIRECTOR)

ESTATUS_ACTIVO = 'active'
ESTATUS_EGRESADO = 'graduated'
ESTATUS_ALUMNO = (ESTATUS_ACTIVO, ESTATUS_EGRESADO)

# === PERSISTENCIA ===

CLAVE_DATOS_LOCALES = 'school_data_local'
CLAVE_CONFIG_REMOTA = 'school_firebase_config'

COLECCION_REMOTA = 'schools'
DOCUMENTO_REMOTO = 'default'
CAMPO_ULTIMA_ACTUALIZACION = 'lastUpdated'

ZONA_HORARIA = 'America/Mexico_City'
INTERVALO_REVISION_PERIODOS = 10
