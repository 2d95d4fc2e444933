"""Consultation bookings"""
from datetime import date
from flask import current_app
from caportal.extensions import db
from caportal.exceptions import ValidationError, NotFound
from caportal.models import Appointment
from caportal.models.sys import APPOINTMENT_STATUSES, APPOINTMENT_PENDING, APPOINTMENT_CONFIRMED
from caportal.utils.validators import is_valid_email, to_date


class AppointmentService:

    @staticmethod
    def book(name, email, phone, service, day, time_slot, message=None, user=None):
        """Record a booking request; staff confirm it later"""
        if not all((name, email, phone, service, day, time_slot)):
            raise ValidationError('All required fields must be provided')
        if not is_valid_email(email):
            raise ValidationError('Invalid email format')
        try:
            day = to_date(day)
        except ValidationError:
            raise ValidationError('Invalid date format')

        appointment = Appointment(
            user_id=user.id if user is not None else None,
            name=name.strip(),
            email=email.strip().lower(),
            phone=phone.strip(),
            service=service.strip(),
            date=day,
            time_slot=time_slot.strip(),
            message=(message or '').strip() or None,
            status=APPOINTMENT_PENDING,
        )
        db.session.add(appointment)
        db.session.commit()
        current_app.logger.info(f'Appointment #{appointment.id} requested by {appointment.email} '
                                f'for {appointment.date} {appointment.time_slot}')
        return appointment

    @staticmethod
    def list(status=None):
        query = Appointment.query.filter_by(is_deleted=False)
        if status:
            query = query.filter_by(status=status.upper())
        return query.order_by(Appointment.date.desc(), Appointment.id.desc()).all()

    @staticmethod
    def for_user(user, status=None, upcoming=False):
        query = Appointment.query.filter_by(is_deleted=False, user_id=user.id)
        if status:
            query = query.filter_by(status=status.upper())
        if upcoming:
            query = query.filter(
                Appointment.date >= date.today(),
                Appointment.status.in_((APPOINTMENT_PENDING, APPOINTMENT_CONFIRMED)),
            )
        return query.order_by(Appointment.date.desc(), Appointment.id.desc()).all()

    @staticmethod
    def get(appointment_id):
        appointment = db.session.get(Appointment, appointment_id)
        if appointment is None or appointment.is_deleted:
            raise NotFound('Appointment not found')
        return appointment

    @staticmethod
    def update_status(appointment_id, status):
        status = (status or '').upper()
        if status not in APPOINTMENT_STATUSES:
            raise ValidationError(f'Invalid status: {status}')
        appointment = AppointmentService.get(appointment_id)
        appointment.status = status
        db.session.commit()
        return appointment

    @staticmethod
    def delete(appointment_id):
        appointment = AppointmentService.get(appointment_id)
        db.session.delete(appointment)
        db.session.commit()
