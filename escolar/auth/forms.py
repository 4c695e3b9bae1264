from flask_wtf import FlaskForm
from wtforms import StringField, PasswordField
from wtforms.validators import DataRequired, Length, Regexp, Optional


class LoginForm(FlaskForm):
    class Meta:
        csrf = False  # API JSON; la sesión viaja en la cookie firmada

    username = StringField('Usuario', validators=[
        DataRequired(message="El usuario es obligatorio"),
        Length(max=50)
    ])
    password = PasswordField('Contraseña', validators=[
        DataRequired(message="La contraseña es obligatoria")
    ])
    # Ciclo escolar con el que se trabajará en la sesión, ej. "2025-2026"
    ciclo = StringField('Ciclo Escolar', validators=[
        Optional(),
        Regexp(r'^\d{4}-\d{4}$', message="El ciclo debe tener el formato AAAA-AAAA")
    ])
