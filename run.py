import os
from caportal import create_app
from caportal.extensions import db
from caportal.models import (
    User, ClientGroup,
    BlogPost, Article, Download, Tool, DownloadLead,
    Document, DocumentFolder,
    AuditLog, SiteSetting, ContactSubmission, OutboundEmail, SocialPostLog, Appointment
)

# FLASK_ENV (hosting platforms) or FLASK_CONFIG
config_name = os.getenv('FLASK_ENV') or os.getenv('FLASK_CONFIG') or 'default'
if config_name in ('development', 'dev'):
    config_name = 'development'
elif config_name not in ('production', 'testing'):
    config_name = 'default'

app = create_app(config_name)


@app.shell_context_processor
def make_shell_context():
    """Objects pre-imported by 'flask shell'"""
    return dict(
        db=db,
        app=app,
        User=User,
        ClientGroup=ClientGroup,
        BlogPost=BlogPost,
        Article=Article,
        Download=Download,
        Tool=Tool,
        DownloadLead=DownloadLead,
        Document=Document,
        DocumentFolder=DocumentFolder,
        AuditLog=AuditLog,
        SiteSetting=SiteSetting,
        ContactSubmission=ContactSubmission,
        Appointment=Appointment,
        OutboundEmail=OutboundEmail,
        SocialPostLog=SocialPostLog,
    )


if __name__ == '__main__':
    app.run(host='0.0.0.0', port=int(os.getenv('PORT', 5000)))
