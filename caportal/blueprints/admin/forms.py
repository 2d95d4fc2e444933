from wtforms import StringField
from wtforms.validators import DataRequired, Email, Length
from caportal.utils.forms import ApiForm


class TestEmailForm(ApiForm):
    """Recipient for the SMTP test message"""
    email = StringField('Email', validators=[
        DataRequired(message='Recipient email is required'),
        Email(message='Invalid email format'),
        Length(max=128)
    ])


class SocialPostForm(ApiForm):
    platform = StringField('Platform', validators=[DataRequired(message='Platform is required')])
