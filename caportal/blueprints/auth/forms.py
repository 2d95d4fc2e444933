from wtforms import StringField, PasswordField, BooleanField, IntegerField
from wtforms.validators import DataRequired, Length, EqualTo, Optional
from caportal.utils.forms import ApiForm


class LoginForm(ApiForm):
    loginId = StringField('Login ID or email', validators=[
        DataRequired(message='Login ID and password are required'),
        Length(max=128)
    ])
    password = PasswordField('Password', validators=[
        DataRequired(message='Login ID and password are required')
    ])
    accountId = IntegerField('Account', validators=[Optional()])
    remember = BooleanField('Remember me')


class ChangePasswordForm(ApiForm):
    currentPassword = PasswordField('Current password', validators=[
        DataRequired(message='Current password is required')
    ])
    newPassword = PasswordField('New password', validators=[
        DataRequired(message='New password is required'),
        Length(min=8, message='Password must be at least 8 characters')
    ])
    confirmPassword = PasswordField('Confirm password', validators=[
        Optional(),
        EqualTo('newPassword', message='Passwords do not match')
    ])


class ForgotPasswordForm(ApiForm):
    loginId = StringField('Login ID or email', validators=[
        DataRequired(message='Login ID or email is required'),
        Length(max=128)
    ])


class ResetPasswordForm(ApiForm):
    token = StringField('Token', validators=[DataRequired(message='Reset token is required')])
    password = PasswordField('New password', validators=[
        DataRequired(message='New password is required'),
        Length(min=8, message='Password must be at least 8 characters')
    ])
