from datetime import datetime, date
from caportal.extensions import db

class BaseModel(db.Model):
    """
    Common model base:
    integer id, created/updated timestamps, soft-delete flag, serialisation
    """
    __abstract__ = True

    id = db.Column(db.Integer, primary_key=True, autoincrement=True)
    created_at = db.Column(db.DateTime, default=datetime.utcnow, index=True)
    updated_at = db.Column(db.DateTime, default=datetime.utcnow, onupdate=datetime.utcnow)

    # Soft delete marker
    is_deleted = db.Column(db.Boolean, default=False, index=True)

    # Columns never serialised by to_dict()
    __private_fields__ = ()

    def save(self):
        """Persist"""
        db.session.add(self)
        db.session.commit()

    def delete(self, soft=True):
        """Delete (soft by default)"""
        if soft:
            self.is_deleted = True
            self.save()
        else:
            db.session.delete(self)
            db.session.commit()

    def to_dict(self):
        """
        Column-by-column serialisation for JSON responses.
        Column names are converted to camelCase; private columns and
        anything starting with '_' are skipped.
        """
        data = {}
        for c in self.__table__.columns:
            if c.name.startswith('_') or c.name in self.__private_fields__:
                continue
            val = getattr(self, c.name)
            if isinstance(val, (datetime, date)):
                val = val.isoformat()
            data[camelize(c.name)] = val
        return data


def camelize(name):
    head, *rest = name.split('_')
    return head + ''.join(part.title() for part in rest)
