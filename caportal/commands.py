import click
import random
from datetime import datetime, timedelta
from flask.cli import with_appcontext
from caportal.extensions import db
from caportal.models import (
    User, ClientGroup, BlogPost, Article, Download, Tool, DownloadLead,
    DocumentFolder, ContactSubmission, Appointment
)
from caportal.models.auth import ROLE_ADMIN, ROLE_CLIENT
from caportal.models.content import BLOG_CATEGORIES, RESOURCE_CATEGORIES, TOOL_CATEGORIES
from caportal.models.sys import APPOINTMENT_STATUSES
from caportal.services.user_service import generate_login_id, unique_login_id, DEFAULT_PASSWORD
from caportal.utils.fake_gen import fake
from caportal.utils.validators import slugify


@click.command('create-admin')
@click.option('--email', prompt=True, help='Admin email (also the login id)')
@click.option('--name', prompt=True, help='Display name')
@click.option('--password', prompt=True, hide_input=True, confirmation_prompt=True)
@with_appcontext
def create_admin(email, name, password):
    """Create an ADMIN account, or promote an existing one"""
    email = email.strip().lower()
    if len(password) < 8:
        raise click.BadParameter('Password must be at least 8 characters', param_hint='--password')

    user = User.query.filter_by(login_id=email).first()
    if user is None:
        user = User(login_id=email, email=email)
        db.session.add(user)
        action = 'created'
    else:
        action = 'updated'
    user.name = name
    user.role = ROLE_ADMIN
    user.is_active_user = True
    user.is_deleted = False
    user.password = password
    db.session.commit()
    click.echo(click.style(f'Admin {email} {action}.', fg='green'))


@click.command('status')
@with_appcontext
def status():
    """Record counts per table"""
    click.echo(click.style('Database status:', fg='cyan', bold=True))
    try:
        counts = [
            ('Users', User.query.count()),
            ('Blog posts', BlogPost.query.count()),
            ('Articles', Article.query.count()),
            ('Downloads', Download.query.count()),
            ('Tools', Tool.query.count()),
            ('Leads', DownloadLead.query.count()),
            ('Contacts', ContactSubmission.query.count()),
            ('Appointments', Appointment.query.count()),
        ]
        for label, count in counts:
            click.echo(f' - {label}: \t{count}')

        if counts[0][1] > 0:
            click.echo(click.style('Database reachable, data present.', fg='green'))
        else:
            click.echo(click.style('Database is empty, run flask forge to seed demo data.', fg='yellow'))
    except Exception as e:
        click.echo(click.style(f'Could not read the database: {e}', fg='red'))
        click.echo("Check that 'flask db upgrade' has been run")


@click.command('forge')
@click.option('--scale', default=1, help='Data volume multiplier (default 1)')
@with_appcontext
def forge(scale):
    """
    Rebuild the database with demo data.
    WARNING: drops every table first.
    """
    click.echo(click.style(f'Seeding demo data (scale {scale}x)...', fg='cyan', bold=True))

    db.drop_all()
    db.create_all()

    click.echo('Creating users...')
    clients = init_users(scale)

    click.echo('Publishing content...')
    resources = init_content(scale)

    click.echo('Simulating leads and enquiries...')
    init_leads(resources, scale)
    init_contacts(scale)
    init_appointments(clients, scale)

    click.echo('Creating client folders...')
    init_folders(clients)

    click.echo(click.style('Demo data ready.', fg='green', bold=True))
    click.echo(f'Admin login: admin@example.com / {DEFAULT_PASSWORD}')


def init_users(scale=1):
    admin = User(
        login_id='admin@example.com',
        email='admin@example.com',
        name='Firm Administrator',
        role=ROLE_ADMIN,
    )
    admin.password = DEFAULT_PASSWORD
    db.session.add(admin)

    groups = []
    for _ in range(3 * scale):
        group = ClientGroup(name=f'{fake.last_name()} Family {len(groups) + 1}')
        db.session.add(group)
        groups.append(group)
    db.session.commit()

    clients = []
    for i in range(20 * scale):
        name = fake.name()
        dob = fake.date_of_birth(minimum_age=18, maximum_age=80)
        user = User(
            login_id=unique_login_id(generate_login_id(name, dob)),
            email=fake.email() if i % 3 else None,
            name=name,
            phone=fake.msisdn()[:10],
            date_of_birth=dob,
            role=ROLE_CLIENT,
            services=fake.client_services(),
            group=random.choice(groups) if i % 2 == 0 else None,
        )
        user.password = DEFAULT_PASSWORD
        db.session.add(user)
        # login ids must be visible to unique_login_id
        db.session.flush()
        clients.append(user)
    db.session.commit()
    click.echo(f'  created {len(clients)} clients')
    return clients


def init_content(scale=1):
    admin = User.query.filter_by(role=ROLE_ADMIN).first()
    for i in range(8 * scale):
        title = f'{fake.blog_title()} #{i + 1}'
        published = random.random() > 0.25
        db.session.add(BlogPost(
            title=title,
            slug=slugify(title),
            excerpt=fake.sentence(nb_words=18),
            content='\n\n'.join(fake.paragraphs(nb=5)),
            category=random.choice(BLOG_CATEGORIES),
            tags=fake.words(nb=3),
            is_published=published,
            published_at=datetime.utcnow() - timedelta(days=random.randint(1, 200)) if published else None,
            view_count=random.randint(0, 500),
            author=admin,
        ))

    resources = []
    for i in range(5 * scale):
        title = f'{fake.resource_title()} {i + 1}'
        common = dict(
            title=title,
            description=fake.sentence(nb_words=14),
            file_name=f'{slugify(title)}.pdf',
            file_path=f'resources/{slugify(title)}.pdf',
            file_size=random.randint(20, 900) * 1024,
            file_type='PDF',
            category=random.choice(RESOURCE_CATEGORIES),
            sort_order=i,
        )
        article = Article(slug=slugify(title), **common)
        download = Download(**common)
        db.session.add_all([article, download])
        resources.extend([('article', article), ('download', download)])

    for i in range(3 * scale):
        name = f'{fake.tool_name()} {i + 1}'
        tool = Tool(
            name=name,
            slug=slugify(name),
            description='\n\n'.join(fake.paragraphs(nb=2)),
            short_desc=fake.sentence(nb_words=10),
            category=random.choice(TOOL_CATEGORIES),
            download_url=f'https://downloads.example.com/{slugify(name)}.zip',
            features=fake.words(nb=4),
        )
        db.session.add(tool)
        resources.append(('tool', tool))

    db.session.commit()
    return resources


def init_leads(resources, scale=1):
    for _ in range(15 * scale):
        kind, resource = random.choice(resources)
        verified = random.random() > 0.3
        db.session.add(DownloadLead(
            resource_kind=kind,
            resource_id=resource.id,
            name=fake.name(),
            email=fake.email(),
            phone=fake.msisdn()[:10],
            company=fake.company() if random.random() > 0.5 else None,
            verified=verified,
            downloaded_at=datetime.utcnow() if verified else None,
        ))
        if verified:
            resource.download_count = (resource.download_count or 0) + 1
    db.session.commit()


def init_contacts(scale=1):
    for _ in range(6 * scale):
        db.session.add(ContactSubmission(
            name=fake.name(),
            email=fake.email(),
            phone=fake.msisdn()[:10],
            service=random.choice(fake.client_services()),
            message=fake.paragraph(nb_sentences=4),
            is_read=random.random() > 0.5,
        ))
    db.session.commit()


def init_appointments(clients, scale=1):
    slots = ('10:00 AM', '11:00 AM', '12:00 PM', '3:00 PM', '4:00 PM', '5:00 PM')
    for _ in range(5 * scale):
        client = random.choice(clients) if clients and random.random() > 0.5 else None
        db.session.add(Appointment(
            user_id=client.id if client else None,
            name=client.name if client else fake.name(),
            email=(client.email if client else None) or fake.email(),
            phone=fake.msisdn()[:10],
            service=random.choice(fake.client_services()),
            date=(datetime.utcnow() + timedelta(days=random.randint(-20, 20))).date(),
            time_slot=random.choice(slots),
            status=random.choice(APPOINTMENT_STATUSES),
        ))
    db.session.commit()


def init_folders(clients):
    for client in clients[:5]:
        for year in ('FY 2023-24', 'FY 2024-25'):
            folder = DocumentFolder(name=year, user_id=client.id)
            db.session.add(folder)
            db.session.flush()
            db.session.add(DocumentFolder(name='GST', user_id=client.id, parent_id=folder.id))
    db.session.commit()
