from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField, SelectField, TextAreaField
from wtforms.validators import DataRequired, Length, Optional

from escolar.core.constants import ROLES


class UsuarioForm(FlaskForm):
    """Campos planos del usuario; asignaciones y horario se leen del JSON."""

    class Meta:
        csrf = False

    name = StringField('Nombre', validators=[
        DataRequired(message="El nombre es obligatorio"),
        Length(min=3, max=120, message="El nombre debe tener entre 3 y 120 caracteres")
    ])
    username = StringField('Usuario', validators=[
        DataRequired(message="El usuario es obligatorio"),
        Length(min=3, max=50)
    ])
    # Obligatoria solo al crear; al editar, vacía conserva la actual
    password = PasswordField('Contraseña', validators=[Optional(), Length(min=3, max=128)])
    role = SelectField('Rol', choices=[(r, r) for r in ROLES], validators=[DataRequired()])


class ConexionForm(FlaskForm):
    class Meta:
        csrf = False

    configuracion = TextAreaField('Configuración (JSON)', validators=[
        DataRequired(message="Pega la configuración de Firebase/Firestore.")
    ])
