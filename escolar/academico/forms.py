from flask_wtf import FlaskForm
from wtforms import StringField
from wtforms.validators import AnyOf, DataRequired, Length, Regexp, Optional

from escolar.core.constants import ESTATUS_ALUMNO

PATRON_NOMBRE = r'^[A-Za-zÀ-ÖØ-öø-ÿ\s\.]+$'


class EstudianteForm(FlaskForm):
    class Meta:
        csrf = False

    name = StringField('Nombre', validators=[
        DataRequired(message="El nombre es obligatorio"),
        Length(min=3, max=120, message="El nombre debe tener entre 3 y 120 caracteres"),
        Regexp(PATRON_NOMBRE, message="El nombre debe contener solo letras")
    ])
    # Grado y grupo se validan contra la estructura escolar vigente en el servicio
    grade = StringField('Grado', validators=[DataRequired()])
    group = StringField('Grupo', validators=[DataRequired(), Length(max=2)])
    technology = StringField('Taller', validators=[Optional()])


class EdicionEstudianteForm(FlaskForm):
    """Edición parcial: solo se cambian los campos enviados."""

    class Meta:
        csrf = False

    name = StringField('Nombre', validators=[
        Optional(),
        Length(min=3, max=120, message="El nombre debe tener entre 3 y 120 caracteres"),
        Regexp(PATRON_NOMBRE, message="El nombre debe contener solo letras")
    ])
    grade = StringField('Grado', validators=[Optional()])
    group = StringField('Grupo', validators=[Optional(), Length(max=2)])
    technology = StringField('Taller', validators=[Optional()])
    status = StringField('Estatus', validators=[
        Optional(),
        AnyOf(ESTATUS_ALUMNO, message="Estatus válidos: active, graduated")
    ])
