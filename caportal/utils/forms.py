"""
WTForms helpers for the JSON API
"""
from flask import request
from flask_wtf import FlaskForm
from werkzeug.datastructures import ImmutableMultiDict
from caportal.exceptions import ValidationError


class ApiForm(FlaskForm):
    """FlaskForm fed from JSON or form data; the API blueprints are CSRF exempt"""
    class Meta:
        csrf = False

    def __init__(self, *args, **kwargs):
        if 'formdata' not in kwargs and request.is_json:
            # JSON null counts as a missing field; numbers reach the validators as text
            kwargs['formdata'] = ImmutableMultiDict(
                {k: _form_value(v) for k, v in request_data().items() if v is not None}
            )
        super().__init__(*args, **kwargs)


def _form_value(value):
    # bools stay as-is: BooleanField reads the string 'False' as true
    if isinstance(value, (int, float)) and not isinstance(value, bool):
        return str(value)
    return value


def validate_form(form_class, **kwargs):
    """Instantiate and validate; the first error becomes the message"""
    form = form_class(**kwargs)
    if not form.validate():
        errors = {name: msgs for name, msgs in form.errors.items()}
        first = next(iter(errors.values()))[0]
        raise ValidationError(first, payload={'errors': errors})
    return form


def request_data():
    """Request body as a plain dict (JSON or form fields)"""
    if request.is_json:
        data = request.get_json(silent=True)
        return data if isinstance(data, dict) else {}
    return request.form.to_dict()
