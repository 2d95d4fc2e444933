from wtforms import StringField, TextAreaField, IntegerField, BooleanField
from wtforms.validators import DataRequired, Length, Optional
from caportal.utils.forms import ApiForm
from caportal.utils.validators import validate_phone


class OtpSendForm(ApiForm):
    email = StringField('Email', validators=[
        DataRequired(message='Email, name, and purpose are required'), Length(max=128)
    ])
    name = StringField('Name', validators=[
        DataRequired(message='Email, name, and purpose are required'), Length(max=128)
    ])
    purpose = StringField('Purpose', validators=[
        DataRequired(message='Email, name, and purpose are required')
    ])


class OtpVerifyForm(ApiForm):
    email = StringField('Email', validators=[DataRequired(message='Email, OTP, and purpose are required')])
    otp = StringField('OTP', validators=[
        DataRequired(message='Email, OTP, and purpose are required'), Length(max=8)
    ])
    purpose = StringField('Purpose', validators=[DataRequired(message='Email, OTP, and purpose are required')])


class ContactForm(ApiForm):
    name = StringField('Name', validators=[DataRequired(message='All fields are required'), Length(max=128)])
    email = StringField('Email', validators=[DataRequired(message='All fields are required'), Length(max=128)])
    phone = StringField('Phone', validators=[
        DataRequired(message='All fields are required'), validate_phone
    ])
    subject = StringField('Subject', validators=[DataRequired(message='All fields are required'), Length(max=128)])
    message = TextAreaField('Message', validators=[
        DataRequired(message='All fields are required'), Length(max=5000)
    ])


class LeadRequestForm(ApiForm):
    name = StringField('Name', validators=[
        DataRequired(message='Name, email, and resource ID are required'), Length(max=128)
    ])
    email = StringField('Email', validators=[
        DataRequired(message='Name, email, and resource ID are required'), Length(max=128)
    ])
    phone = StringField('Phone', validators=[Optional(), Length(max=20)])
    company = StringField('Company', validators=[Optional(), Length(max=128)])
    resourceId = IntegerField('Resource', validators=[Optional()])
    skipOtp = BooleanField('Skip OTP')


class LeadVerifyForm(ApiForm):
    leadId = IntegerField('Lead', validators=[DataRequired(message='Lead ID and OTP are required')])
    otp = StringField('OTP', validators=[DataRequired(message='Lead ID and OTP are required')])


class AppointmentForm(ApiForm):
    name = StringField('Name', validators=[
        DataRequired(message='All required fields must be provided'), Length(max=128)
    ])
    email = StringField('Email', validators=[
        DataRequired(message='All required fields must be provided'), Length(max=128)
    ])
    phone = StringField('Phone', validators=[
        DataRequired(message='All required fields must be provided'), validate_phone
    ])
    service = StringField('Service', validators=[
        DataRequired(message='All required fields must be provided'), Length(max=128)
    ])
    date = StringField('Date', validators=[DataRequired(message='All required fields must be provided')])
    timeSlot = StringField('Time slot', validators=[
        DataRequired(message='All required fields must be provided'), Length(max=32)
    ])
    message = TextAreaField('Message', validators=[Optional(), Length(max=5000)])
