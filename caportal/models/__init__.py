# Import in dependency order
from .base import BaseModel
from .auth import User, ClientGroup
from .content import BlogPost, Article, Download, Tool, DownloadLead
from .documents import Document, DocumentFolder
from .sys import (
    AuditLog, SiteSetting, EmailVerification, ContactSubmission,
    OutboundEmail, SocialPostLog, Appointment
)
